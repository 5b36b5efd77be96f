"""Verse service - business logic for the recommendation proxy."""

from aws_lambda_powertools import Logger

from prefilter import (
    InputValidator,
    PreFilterConfig,
    PreFilterResult,
    RuleCode,
    Severity,
    pre_filter,
)
from prefilter.models import BLOCK_MESSAGES, RULE_SEVERITY
from shared.exceptions import ModerationBlockedError, ValidationFailedError
from shared.history import HistoryStore, truncate_history
from shared.models import HistoryEntry
from shared.quota_limits import QuotaLimits
from shared.rate_limiter import RateLimiter
from shared.usage_counter import DailyUsage, DailyUsageCounter

from .generator import VerseExplainer, VerseGenerator
from .models import (
    ExplainRequest,
    ExplainResponse,
    HistoryResponse,
    RecommendRequest,
    RecommendResponse,
    UsageResponse,
)
from .moderation import Moderator, ModerationReport, ModerationVerdict, PatternModerator
from .prompts import build_explain_prompt, build_prompt

logger = Logger(child=True)

MODERATION_REVIEW_CODE = "moderation_review"


class VerseService:
    """Service layer for verse recommendations."""

    def __init__(
        self,
        counter: DailyUsageCounter,
        history_store: HistoryStore,
        generator: VerseGenerator,
        max_history_size: int = QuotaLimits.MAX_HISTORY_SIZE,
        prefilter_config: PreFilterConfig | None = None,
        moderator: Moderator | None = None,
        rate_limiter: RateLimiter | None = None,
        hourly_limit: int = QuotaLimits.HOURLY_LIMIT,
        explainer: VerseExplainer | None = None,
    ) -> None:
        """Initialize verse service.

        Args:
            counter: Per-user daily request counter
            history_store: Stored prompt history
            generator: Backend that turns a prompt into a verse
            max_history_size: Most history entries forwarded upstream
            prefilter_config: Pre-filter policy
            moderator: Content moderator. Defaults to PatternModerator.
            rate_limiter: Hourly limiter. Without one only the daily quota applies.
            hourly_limit: Requests per user per clock hour
            explainer: Backend for Korean explanations. Defaults to ``generator``.
        """
        self.counter = counter
        self.history_store = history_store
        self.generator = generator
        self.max_history_size = max_history_size
        self.prefilter_config = prefilter_config or PreFilterConfig.default()
        self.moderator = moderator if moderator is not None else PatternModerator()
        self.rate_limiter = rate_limiter
        self.hourly_limit = hourly_limit
        self.explainer = explainer if explainer is not None else generator

    def _screen(self, mood: str, note: str | None) -> tuple[PreFilterResult, ModerationReport]:
        """Validate, pre-filter and moderate the input.

        Raises:
            InputValidationError: If the raw input fails validation
            ValidationFailedError: If the pre-filter blocks the input
            ModerationBlockedError: If moderation blocks the input
        """
        InputValidator.validate(mood, note)
        result = pre_filter(InputValidator.combine(mood, note), self.prefilter_config)
        if result.is_blocked:
            code = result.verdict.code or ""
            raise ValidationFailedError(
                BLOCK_MESSAGES.get(code, "입력을 확인해주세요"), code=code
            )

        report = self.moderator.analyze(result.normalized_text)
        if report.verdict is ModerationVerdict.BLOCKED:
            raise ModerationBlockedError(report.reason)
        return result, report

    def _consume(self, user_id: str, action: str) -> DailyUsage:
        """Take an hourly slot, then a daily one.

        Raises:
            RateLimitedError: If either limit is reached
        """
        if self.rate_limiter is not None:
            self.rate_limiter.check_and_consume(f"{action}:{user_id}", self.hourly_limit)
        return self.counter.consume(user_id)

    def recommend(self, user_id: str, request: RecommendRequest) -> RecommendResponse:
        """Recommend one verse for the user's mood.

        Blocked input never reaches the counter or the upstream model.
        A slot is taken before the upstream call, so a failed call still
        counts against the day.

        Args:
            user_id: The user's ID
            request: Mood, optional note and locale

        Returns:
            The verse with its reason and the remaining daily quota

        Raises:
            InputValidationError: If the raw input fails validation
            ValidationFailedError: If the pre-filter blocks the input
            ModerationBlockedError: If moderation blocks the input
            RateLimitedError: If the hourly or daily limit is reached
            NetworkError: If the upstream call or its parsing fails
        """
        # 1. Validate, screen and moderate the input
        result, report = self._screen(request.mood, request.note)
        safe_mode = report.verdict is ModerationVerdict.NEEDS_REVIEW

        # 2. Take a quota slot
        usage = self._consume(user_id, "generate_verse")

        # 3. Build the prompt from the capped history
        history = self.history_store.load(user_id)
        forwarded = truncate_history(history.recent(), self.max_history_size)
        prompt = build_prompt(
            result.normalized_text, forwarded, request.locale, safe_mode=safe_mode
        )

        # 4. Generate
        generated = self.generator.generate(prompt)

        # 5. Record the exchange
        self.history_store.append(
            user_id,
            HistoryEntry(prompt=result.normalized_text, verse_ref=generated.verse.reference),
        )

        review_codes = [
            code
            for code in result.codes
            if RULE_SEVERITY[RuleCode(code)] is Severity.REVIEW
        ]
        if safe_mode:
            review_codes.append(MODERATION_REVIEW_CODE)

        logger.info(
            "Verse recommended",
            extra={
                "user_id": user_id,
                "verse_ref": generated.verse.reference,
                "history_forwarded": len(forwarded),
                "request_count": usage.request_count,
                "review_codes": review_codes,
            },
        )

        return RecommendResponse(
            verse=generated,
            reference=generated.verse.reference,
            localized_reference=generated.verse.localized_reference,
            remaining=usage.remaining,
            review_codes=review_codes,
        )

    def explain(self, user_id: str, request: ExplainRequest) -> ExplainResponse:
        """Render a recommended verse in Korean with a short rationale.

        Counts against the same hourly and daily limits as ``recommend``.

        Args:
            user_id: The user's ID
            request: English verse text and reference plus the user's mood

        Returns:
            The Korean reference, paraphrase, rationale and remaining quota

        Raises:
            InputValidationError: If the mood/note fail validation
            ValidationFailedError: If the pre-filter blocks the mood/note
            ModerationBlockedError: If moderation blocks the mood/note
            RateLimitedError: If the hourly or daily limit is reached
            NetworkError: If the upstream call or its parsing fails
        """
        result, _ = self._screen(request.mood, request.note)
        usage = self._consume(user_id, "explain_verse")

        prompt = build_explain_prompt(
            request.english_text, request.verse_ref, result.normalized_text
        )
        explanation = self.explainer.explain(prompt)

        logger.info(
            "Verse explained",
            extra={
                "user_id": user_id,
                "verse_ref": request.verse_ref,
                "request_count": usage.request_count,
            },
        )

        return ExplainResponse(
            korean=explanation.korean,
            rationale=explanation.rationale,
            korean_reference=explanation.korean_reference,
            paraphrase=explanation.paraphrase,
            remaining=usage.remaining,
        )

    def get_usage(self, user_id: str) -> UsageResponse:
        usage = self.counter.get_usage(user_id)
        return UsageResponse(
            day_key=usage.day_key,
            request_count=usage.request_count,
            limit=usage.limit,
            remaining=usage.remaining,
        )

    def get_history(self, user_id: str, limit: int | None = None) -> HistoryResponse:
        """Get stored history, oldest first.

        Args:
            user_id: The user's ID
            limit: Optional number of most recent entries to return

        Returns:
            History entries and the configured cap
        """
        history = self.history_store.load(user_id)
        return HistoryResponse(
            entries=history.recent(limit), max_size=self.history_store.max_size
        )

    def clear_history(self, user_id: str) -> bool:
        """Delete the user's stored history.

        Returns:
            True if there was history to delete
        """
        deleted = self.history_store.clear(user_id)
        logger.info("History cleared", extra={"user_id": user_id, "deleted": deleted})
        return deleted
