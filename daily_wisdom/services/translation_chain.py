import asyncio
import logging
from typing import Optional

from daily_wisdom.errors import ProviderUnavailableError
from daily_wisdom.models.article import Article
from daily_wisdom.services.translation_provider import QuotaAwareTranslationProvider, TranslationProvider


class TranslationProviderChain:
    """
    Primary/fallback translation provider selection.

    Policy:
    - Use the primary when it is available and has a backend code for the language
    - On ANY primary failure (quota or call), fall through to the fallback
    - If the fallback cannot be used, re-raise the primary's error
    """

    def __init__(self, primary: Optional[TranslationProvider], fallback: Optional[TranslationProvider]):
        self.primary = primary
        self.fallback = fallback
        self.logger = logging.getLogger(__name__)
        self._status_task: Optional[asyncio.Task] = None

    @staticmethod
    def _eligible(provider: Optional[TranslationProvider], language: str) -> bool:
        return (
            provider is not None
            and provider.is_available()
            and provider.supports_language(language)
        )

    async def translate(self, article: Article, target_language: str) -> Article:
        primary_error: Optional[Exception] = None

        if self._eligible(self.primary, target_language):
            try:
                self.logger.info(f"Attempting translation to {target_language} with {self.primary.name}")
                result = await self.primary.translate(article, target_language)
                self.logger.info(f"{self.primary.name} translation to {target_language} successful")
                return result
            except Exception as e:
                primary_error = e
                self.logger.warning(
                    f"{self.primary.name} translation to {target_language} failed, trying fallback: {e}",
                    extra={"date": article.date, "language": target_language, "provider": self.primary.name},
                )
        elif self.primary is not None:
            self.logger.info(f"{self.primary.name} not usable for {target_language}, using fallback")

        if self._eligible(self.fallback, target_language):
            result = await self.fallback.translate(article, target_language)
            self.logger.info(f"{self.fallback.name} fallback translation to {target_language} successful")
            return result

        if primary_error is not None:
            raise primary_error
        raise ProviderUnavailableError(f"No translation provider available for {target_language}")

    async def describe_status(self) -> None:
        """Log provider availability once; concurrent callers share the same run."""
        if self._status_task is None:
            self._status_task = asyncio.ensure_future(self._log_status())
        await asyncio.shield(self._status_task)

    async def _log_status(self) -> None:
        self.logger.info("=" * 70)
        self.logger.info("Initializing translation providers...")

        primary_ok = False
        if self.primary is not None:
            if isinstance(self.primary, QuotaAwareTranslationProvider) and self.primary.is_available():
                try:
                    quota = await self.primary.check_quota(True)
                    primary_ok = self.primary.is_available()
                    if primary_ok:
                        self.logger.info(
                            f"{self.primary.name}: ✓ Available - {quota.remaining:,}/{quota.character_limit:,} "
                            f"characters remaining ({100 - quota.percentage_used:.2f}% free)"
                        )
                    else:
                        self.logger.info(
                            f"{self.primary.name}: ✗ Quota exhausted - {quota.percentage_used:.2f}% used "
                            f"({quota.character_count:,}/{quota.character_limit:,} characters)"
                        )
                except Exception as e:
                    self.logger.error(f"{self.primary.name}: ✗ Quota check failed - {e}")
            else:
                primary_ok = self.primary.is_available()
                self.logger.info(f"{self.primary.name}: {'✓ Available' if primary_ok else '✗ Not configured'}")

        fallback_ok = self.fallback is not None and self.fallback.is_available()
        if self.fallback is not None:
            self.logger.info(f"{self.fallback.name}: {'✓ Available' if fallback_ok else '✗ Not configured'}")

        if not primary_ok and not fallback_ok:
            self.logger.error("⚠️  WARNING: No translation providers available!")
        elif not primary_ok:
            self.logger.info(f"Using {self.fallback.name} for translations")
        elif not fallback_ok:
            self.logger.info(f"Using {self.primary.name} for translations (no fallback available)")
        else:
            self.logger.info(f"Using {self.primary.name} with {self.fallback.name} fallback")
        self.logger.info("=" * 70)
