"""Bounded per-user prompt history."""

from collections.abc import Iterable, Sequence
from typing import TypeVar

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from .db import DynamoDBClient
from .models import HistoryEntry
from .quota_limits import QuotaLimits

logger = Logger(child=True)

T = TypeVar("T")


def truncate_history(entries: Sequence[T], max_size: int) -> list[T]:
    """Keep only the most recent ``max_size`` entries.

    Entries are ordered oldest first; older ones are dropped.

    Args:
        entries: History in insertion order
        max_size: Maximum number of entries to keep

    Returns:
        New list of at most ``max_size`` entries
    """
    if max_size <= 0:
        return []
    return list(entries[-max_size:])


class HistoryList:
    """Ordered history capped at a fixed size, oldest entries dropped first."""

    def __init__(
        self,
        entries: Iterable[HistoryEntry] = (),
        max_size: int = QuotaLimits.MAX_HISTORY_SIZE,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: list[HistoryEntry] = truncate_history(list(entries), max_size)

    def append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)
        if len(self._entries) > self.max_size:
            del self._entries[: len(self._entries) - self.max_size]

    def recent(self, limit: int | None = None) -> list[HistoryEntry]:
        """Return entries oldest first, optionally only the last ``limit``."""
        if limit is None:
            return list(self._entries)
        return truncate_history(self._entries, limit)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))


class HistoryStore:
    """Persists each user's history as one DynamoDB item."""

    SK = "HISTORY"

    def __init__(
        self,
        db: DynamoDBClient,
        max_size: int = QuotaLimits.MAX_HISTORY_SIZE,
    ) -> None:
        """Initialize store.

        Args:
            db: DynamoDB client
            max_size: Maximum entries kept per user
        """
        self.db = db
        self.max_size = max_size

    @staticmethod
    def _pk(user_id: str) -> str:
        return f"USER#{user_id}"

    def load(self, user_id: str) -> HistoryList:
        """Load a user's history, truncated to ``max_size``."""
        item = self.db.get_item(self._pk(user_id), self.SK)
        raw_entries = item.get("entries", []) if item else []
        entries = [HistoryEntry(**entry) for entry in raw_entries]
        if len(entries) > self.max_size:
            logger.debug(
                "Stored history exceeds limit, truncating",
                extra={"user_id": user_id, "stored": len(entries), "max": self.max_size},
            )
        return HistoryList(entries, max_size=self.max_size)

    def save(self, user_id: str, history: HistoryList) -> None:
        entries = [entry.model_dump() for entry in history.recent(self.max_size)]
        self.db.put_item(self._pk(user_id), self.SK, {"entries": entries})

    def append(self, user_id: str, entry: HistoryEntry) -> HistoryList:
        """Add an entry with one atomic ``list_append`` and trim to ``max_size``.

        Concurrent appends for the same user all land. The trim is
        conditional on the list length it saw; if another write got there
        first the trim is skipped and left to the next append, since
        ``load`` truncates anyway.

        Returns:
            The updated history
        """
        pk = self._pk(user_id)
        item = self.db.update_item(
            pk,
            self.SK,
            "SET entries = list_append(if_not_exists(entries, :empty), :new), "
            "updated_at = :updated_at",
            {":empty": [], ":new": [entry.model_dump()]},
        )
        raw_entries = item.get("entries", [])

        if len(raw_entries) > self.max_size:
            try:
                self.db.update_item(
                    pk,
                    self.SK,
                    "SET entries = :kept, updated_at = :updated_at",
                    {":kept": raw_entries[-self.max_size:], ":seen": len(raw_entries)},
                    condition="size(entries) = :seen",
                )
            except ClientError as e:
                if e.response["Error"]["Code"] != "ConditionalCheckFailedException":
                    raise
                logger.debug(
                    "History changed before trim, skipping",
                    extra={"user_id": user_id, "seen": len(raw_entries)},
                )

        return HistoryList(
            [HistoryEntry(**raw) for raw in raw_entries], max_size=self.max_size
        )

    def clear(self, user_id: str) -> bool:
        """Delete a user's history.

        Returns:
            True if history existed
        """
        return self.db.delete_item(self._pk(user_id), self.SK)
