"""One-at-a-time verse request flow."""

import threading
from datetime import datetime

from aws_lambda_powertools import Logger

from prefilter import InputValidator, PreFilterConfig, PreFilterResult, pre_filter
from prefilter.models import BLOCK_MESSAGES
from shared.exceptions import ValidationFailedError
from shared.history import HistoryList
from shared.models import GeneratedVerse, HistoryEntry, QuietTimeDraft
from shared.quota_limits import QuotaLimits
from verse.generator import VerseGenerator

from .draft_manager import DraftManager

logger = Logger(child=True)


class RequestVerseFlow:
    """Submits one verse request at a time.

    A submit while another is in flight is ignored. ``cancel`` clears the
    busy flag; a result that arrives afterwards is dropped.
    """

    def __init__(
        self,
        generator: VerseGenerator,
        drafts: DraftManager | None = None,
        history: HistoryList | None = None,
        prefilter_config: PreFilterConfig | None = None,
    ) -> None:
        """Initialize flow.

        Args:
            generator: Backend that produces verses
            drafts: Draft cache for today's record
            history: Local history, capped at MAX_HISTORY_SIZE by default
            prefilter_config: Pre-filter policy
        """
        self.generator = generator
        self.drafts = drafts if drafts is not None else DraftManager()
        if history is None:
            history = HistoryList(max_size=QuotaLimits.MAX_HISTORY_SIZE)
        self.history = history
        self.prefilter_config = prefilter_config or PreFilterConfig.default()
        self.last_result: PreFilterResult | None = None
        self._busy = False
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def is_busy(self) -> bool:
        with self._lock:
            return self._busy

    def cancel(self) -> None:
        """Stop waiting for the in-flight request."""
        with self._lock:
            if self._busy:
                logger.debug("Verse request cancelled")
            self._busy = False
            self._generation += 1

    def _finish(self, generation: int) -> bool:
        """Clear the busy flag if ``generation`` is still current."""
        with self._lock:
            if generation != self._generation or not self._busy:
                return False
            self._busy = False
            return True

    def submit(
        self,
        mood: str,
        note: str | None = None,
        now: datetime | None = None,
    ) -> GeneratedVerse | None:
        """Validate, screen and send one request.

        Args:
            mood: The user's mood/situation text
            note: Optional additional note
            now: Reference instant for the draft's day. Defaults to now.

        Returns:
            The generated verse, or None if another request was in flight
            or this one was cancelled

        Raises:
            InputValidationError: If the input fails validation
            ValidationFailedError: If the pre-filter blocks the input
            DomainError: If the generator fails
        """
        InputValidator.validate(mood, note)
        result = pre_filter(InputValidator.combine(mood, note), self.prefilter_config)
        self.last_result = result
        if result.is_blocked:
            code = result.verdict.code or ""
            raise ValidationFailedError(
                BLOCK_MESSAGES.get(code, "입력을 확인해주세요"), code=code
            )

        with self._lock:
            if self._busy:
                logger.debug("Verse request already in flight")
                return None
            self._busy = True
            self._generation += 1
            generation = self._generation

        try:
            generated = self.generator.generate(result.normalized_text)
        except Exception:
            self._finish(generation)
            raise

        if not self._finish(generation):
            logger.debug("Dropping result of cancelled request")
            return None

        self.history.append(
            HistoryEntry(prompt=result.normalized_text, verse_ref=generated.verse.reference)
        )
        self.drafts.save_draft(QuietTimeDraft.from_generated(generated), now=now)
        return generated
