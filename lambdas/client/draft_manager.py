"""In-memory cache of today's quiet-time draft."""

import threading
from datetime import datetime

from shared.models import QuietTimeDraft
from shared.utils import get_day_key, utc_now


class DraftManager:
    """Holds at most one draft per calendar day.

    All access goes through one lock, so only one caller reads or writes
    the mapping at a time.
    """

    def __init__(self, tz_name: str = "Asia/Seoul") -> None:
        self.tz_name = tz_name
        self._drafts: dict[str, QuietTimeDraft] = {}
        self._lock = threading.Lock()

    def load_today_draft(self, now: datetime | None = None) -> QuietTimeDraft | None:
        day_key = get_day_key(self.tz_name, now)
        with self._lock:
            return self._drafts.get(day_key)

    def save_draft(self, draft: QuietTimeDraft, now: datetime | None = None) -> QuietTimeDraft:
        """Store ``draft`` as today's draft, replacing any earlier one.

        Args:
            draft: Draft to keep
            now: Reference instant. Defaults to the current time.

        Returns:
            The stored draft with a fresh ``updated_at``
        """
        day_key = get_day_key(self.tz_name, now)
        stored = draft.model_copy(update={"updated_at": utc_now()})
        with self._lock:
            self._drafts[day_key] = stored
        return stored

    def clear_today_draft(self, now: datetime | None = None) -> bool:
        """Drop today's draft.

        Returns:
            True if a draft was removed
        """
        day_key = get_day_key(self.tz_name, now)
        with self._lock:
            return self._drafts.pop(day_key, None) is not None
