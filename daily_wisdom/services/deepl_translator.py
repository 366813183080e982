import logging
import ssl
from typing import Dict, Optional

import aiohttp
import certifi

from daily_wisdom.errors import (
    InsufficientQuotaError,
    ProviderUnavailableError,
    TranslationProviderError,
)
from daily_wisdom.models.article import Article
from daily_wisdom.services.translation_provider import QuotaInfo
from daily_wisdom.utils.caching import ExpiringValue
from daily_wisdom.utils.retry import BackoffStrategy, retry_with_backoff

# Universal language code -> DeepL target_lang. Arabic has no mapping here.
LANGUAGE_MAP: Dict[str, str] = {
    'en': 'EN',
    'es': 'ES',
    'fr': 'FR',
    'de': 'DE',
    'pt': 'PT-BR',
    'it': 'IT',
    'nl': 'NL',
    'ru': 'RU',
    'ja': 'JA',
    'zh': 'ZH',
    'ko': 'KO',
}

SEGMENT_MAX_ATTEMPTS = 3
SEGMENT_BASE_DELAY_MS = 1000


class DeepLTranslator:
    """
    Quota-aware primary translation provider backed by the DeepL REST API.

    Quota is read from /usage and cached for ``quota_ttl_seconds``. An expired
    cache counts as unknown, so availability stays optimistic until the
    pre-flight check in translate() says otherwise.
    """

    name = "deepl"

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = "https://api-free.deepl.com/v2",
        min_quota_characters: int = 1000,
        quota_ttl_seconds: float = 300,
    ):
        self.api_key = api_key or None
        self.api_url = api_url.rstrip("/")
        self.min_quota_characters = min_quota_characters
        self.quota_cache: ExpiringValue[QuotaInfo] = ExpiringValue(quota_ttl_seconds)
        self.logger = logging.getLogger(__name__)

        self.session: Optional[aiohttp.ClientSession] = None
        self.timeout = aiohttp.ClientTimeout(total=60)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session with a certifi SSL context."""
        if self.session is None or self.session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            self.session = aiohttp.ClientSession(
                headers={"Authorization": f"DeepL-Auth-Key {self.api_key}"},
                timeout=self.timeout,
                connector=connector,
            )
        return self.session

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
            self.session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    def supports_language(self, language: str) -> bool:
        return language in LANGUAGE_MAP

    def is_available(self) -> bool:
        if not self.api_key:
            return False
        cached = self.quota_cache.get()
        if cached is None:
            return True
        return cached.remaining >= self.min_quota_characters

    async def check_quota(self, force_refresh: bool = False) -> QuotaInfo:
        if not self.api_key:
            raise ProviderUnavailableError("DeepL API key not configured")
        quota = await self.quota_cache.get_or_refresh(self._fetch_usage, force_refresh=force_refresh)
        self.logger.debug(
            f"DeepL quota: {quota.remaining:,}/{quota.character_limit:,} remaining "
            f"({quota.percentage_used:.2f}% used)"
        )
        return quota

    async def _fetch_usage(self) -> QuotaInfo:
        session = await self._get_session()
        async with session.get(f"{self.api_url}/usage") as response:
            if response.status != 200:
                body = await response.text()
                raise TranslationProviderError(
                    f"DeepL usage error: {response.status} - {body}", status=response.status
                )
            data = await response.json()
        return QuotaInfo.from_usage(
            int(data.get("character_count", 0)),
            int(data.get("character_limit", 0)),
        )

    async def translate(self, article: Article, target_language: str) -> Article:
        if not self.api_key:
            raise ProviderUnavailableError("DeepL API key not configured")

        target_code = LANGUAGE_MAP.get(target_language)
        if not target_code:
            raise ProviderUnavailableError(f"Language {target_language} not supported by DeepL")

        required = len(article.title) + len(article.content)
        quota = await self.check_quota(force_refresh=True)
        if required > quota.remaining:
            raise InsufficientQuotaError(required=required, remaining=quota.remaining, provider=self.name)

        self.logger.info(f"Translating article to {target_language} for date: {article.date}")
        title = await self._translate_segment(article.title, target_code)
        content = await self._translate_segment(article.content, target_code)

        self.logger.info(f"DeepL translation completed for {target_language}")
        return article.translated(title=title, content=content, language=target_language)

    async def _translate_segment(self, text: str, target_code: str) -> str:
        def _log_retry(attempt: int, error: Exception) -> None:
            self.logger.error(f"DeepL segment attempt {attempt}/{SEGMENT_MAX_ATTEMPTS} failed: {error}")

        return await retry_with_backoff(
            lambda: self._call_deepl_api(text, target_code),
            max_attempts=SEGMENT_MAX_ATTEMPTS,
            base_delay_ms=SEGMENT_BASE_DELAY_MS,
            strategy=BackoffStrategy.LINEAR,
            on_retry=_log_retry,
        )

    async def _call_deepl_api(self, text: str, target_code: str) -> str:
        session = await self._get_session()
        payload = {"text": [text], "target_lang": target_code}
        async with session.post(f"{self.api_url}/translate", json=payload) as response:
            if response.status != 200:
                body = await response.text()
                raise TranslationProviderError(
                    f"DeepL API error: {response.status} - {body}", status=response.status
                )
            data = await response.json()

        translations = data.get("translations") or []
        if not translations:
            return text
        return translations[0].get("text") or text
