import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from daily_wisdom.errors import ProviderUnavailableError
from daily_wisdom.models.article import Article, DailyContentReport, GenerationOptions
from daily_wisdom.models.languages import BASE_LANGUAGE, translation_targets
from daily_wisdom.pipeline.generation_orchestrator import GenerationOrchestrator
from daily_wisdom.pipeline.translation_orchestrator import TranslationOrchestrator
from daily_wisdom.services.article_repository import ArticleRepository
from daily_wisdom.utils.dates import DateInput, normalize_date, today_utc
from daily_wisdom.utils.retry import retry_with_backoff

ENSURE_MAX_ATTEMPTS = 3
ENSURE_BASE_DELAY_MS = 2000


@dataclass
class GenerationTask:
    """In-flight "ensure content exists" work for one date."""
    date: str
    options: GenerationOptions
    task: "asyncio.Task[DailyContentReport]"
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def elapsed_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.started_at).total_seconds()


class DailyContentCoordinator:
    """
    Fans one date out into base-article generation plus every translation.

    Holds the process-wide registry of in-flight dates: at most one live
    GenerationTask per date. Registration and removal never await in
    between, which is what makes the registry safe on a single event loop.
    """

    def __init__(
        self,
        generator: GenerationOrchestrator,
        translator: TranslationOrchestrator,
        repository: ArticleRepository,
        max_attempts: int = ENSURE_MAX_ATTEMPTS,
        base_delay_ms: int = ENSURE_BASE_DELAY_MS,
    ):
        self.generator = generator
        self.translator = translator
        self.repository = repository
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.logger = logging.getLogger(__name__)
        self._in_flight: Dict[str, GenerationTask] = {}
        # Manual-trigger tasks, referenced until they finish
        self.background_tasks: Set[asyncio.Task] = set()

    def is_generating(self, date: DateInput) -> bool:
        return normalize_date(date) in self._in_flight

    def in_flight_dates(self) -> List[str]:
        return sorted(self._in_flight)

    def get_task(self, date: DateInput) -> Optional[GenerationTask]:
        return self._in_flight.get(normalize_date(date) or "")

    async def ensure_article_for_date(
        self, date: DateInput, options: Optional[GenerationOptions] = None
    ) -> DailyContentReport:
        """
        Make sure content exists for the date, joining in-flight work if any.

        Every caller awaits the same task. Callers that stop waiting do not
        cancel it.
        """
        day = normalize_date(date)
        if not day:
            raise ValueError(f"Invalid date: {date!r}")
        options = options or GenerationOptions()

        existing = self._in_flight.get(day)
        if existing is not None:
            self.logger.info(
                f"[Ensure] Waiting for existing generation for {day} "
                f"(running {existing.elapsed_seconds():.1f}s)"
            )
            if options != existing.options:
                self.logger.warning(
                    f"[Ensure] Requested options {options} for {day} ignored; "
                    f"joining the run started with {existing.options}"
                )
            return await asyncio.shield(existing.task)

        task = asyncio.ensure_future(self._run_with_retry(day, options))
        task.add_done_callback(self._consume_result)
        self._in_flight[day] = GenerationTask(date=day, options=options, task=task)
        return await asyncio.shield(task)

    async def _run_with_retry(self, day: str, options: GenerationOptions) -> DailyContentReport:
        def _log_retry(attempt: int, error: Exception) -> None:
            self.logger.warning(f"[Ensure] Retry {attempt} for {day} due to {error}")

        try:
            return await retry_with_backoff(
                lambda: self.generate_daily_content_for_date(day, options),
                max_attempts=self.max_attempts,
                base_delay_ms=self.base_delay_ms,
                on_retry=_log_retry,
                retryable=lambda e: not isinstance(e, ProviderUnavailableError),
            )
        finally:
            current = self._in_flight.get(day)
            if current is not None and current.task is asyncio.current_task():
                del self._in_flight[day]

    def _consume_result(self, task: asyncio.Task) -> None:
        # Marks the exception retrieved when every caller stopped waiting
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.debug(f"[Ensure] Generation task settled with error: {error}")

    async def generate_daily_content_for_date(
        self, date: str, options: Optional[GenerationOptions] = None
    ) -> DailyContentReport:
        options = options or GenerationOptions()
        report = DailyContentReport(date=date)
        self.logger.info(
            f"[Content Generator] Generating content for {date}. "
            f"translations_only={options.translations_only} force={options.force}"
        )

        base_article: Optional[Article]
        already_exists = await self.repository.has_article_for_date(date)
        if not already_exists or options.force:
            base_article = await self.generator.generate_article(date, force=options.force)
            report.base_generated = base_article is not None
            if base_article is not None:
                self.logger.info(f"[Content Generator] English article generated: \"{base_article.title}\"")
        else:
            base_article = await self.repository.get_article(date, BASE_LANGUAGE)
            if base_article is None:
                # Existence check and fetch disagree; regenerate and keep an eye on storage
                self.logger.warning(
                    f"[Content Generator] Storage inconsistency for {date}: base article reported "
                    "present but could not be loaded, regenerating"
                )
                base_article = await self.generator.generate_article(date)
                report.base_generated = base_article is not None
            else:
                self.logger.info("[Content Generator] English article already exists and will not be regenerated.")

        if base_article is None:
            if options.translations_only:
                self.logger.warning(f"[Content Generator] translations_only set but no English article found for {date}")
                report.aborted = "no base article"
                return report
            raise RuntimeError(f"No English article available for {date}")

        targets = translation_targets()
        outcomes = await asyncio.gather(
            *(self._translate_language(base_article, language, options) for language in targets),
            return_exceptions=True,
        )

        for language, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                report.failed[language] = str(outcome) or type(outcome).__name__
                self.logger.error(
                    f"[Content Generator] Failed to translate to {language}: {outcome}",
                    exc_info=outcome,
                    extra={"date": date, "language": language},
                )
            elif outcome:
                report.translated.append(language)
            else:
                report.skipped.append(language)

        self.logger.info(f"[Content Generator] All translations settled for {date}: {report.summary()}")
        return report

    async def _translate_language(self, base_article: Article, language: str, options: GenerationOptions) -> bool:
        """True when a translation was produced, False when an existing one was kept."""
        if not options.force and await self.repository.has_translation(base_article.date, language):
            self.logger.info(f"[Content Generator] Translation for {language} already exists, skipping")
            return False

        self.logger.info(f"[Content Generator] Translating to {language}...")
        await self.translator.translate_article(base_article, language, force=options.force)
        self.logger.info(f"[Content Generator] {language} translation completed")
        return True

    def trigger_manual_generation(
        self, date: DateInput = None, options: Optional[GenerationOptions] = None
    ) -> "asyncio.Task[DailyContentReport]":
        """
        Start work for the date in the background and return immediately.

        Failures are logged, never raised to the caller.
        """
        day = normalize_date(date) if date else today_utc()
        if not day:
            raise ValueError(f"Invalid date: {date!r}")
        options = options or GenerationOptions()

        self.logger.info(
            f"[Manual Trigger] Generating content for {day} with "
            f"translations_only={options.translations_only} force={options.force}"
        )
        task = asyncio.ensure_future(self.ensure_article_for_date(day, options))
        self.background_tasks.add(task)
        task.add_done_callback(self.background_tasks.discard)
        task.add_done_callback(lambda t: self._log_background_outcome(day, t))
        return task

    def _log_background_outcome(self, day: str, task: asyncio.Task) -> None:
        if task.cancelled():
            self.logger.warning(f"[Manual Trigger] Waiting on {day} was cancelled; generation continues")
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"[Manual Trigger] Background generation failed for {day}: {error}", exc_info=error)
        else:
            self.logger.info(f"[Manual Trigger] {task.result().summary()}")
