import logging
from typing import Any, Dict, Optional

from google import genai

from daily_wisdom.config import load_prompts
from daily_wisdom.errors import ProviderUnavailableError
from daily_wisdom.models.article import Article
from daily_wisdom.models.languages import SUPPORTED_LANGUAGES, language_name
from daily_wisdom.pipeline.article_builder import extract_title
from daily_wisdom.utils.retry import retry_with_backoff


class GeminiTranslator:
    """Unconditional fallback translator: asks Gemini for the translated Markdown."""

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        prompts: Optional[Dict[str, Any]] = None,
    ):
        self.api_key = api_key or ""
        self.model = model
        self.prompts = prompts if prompts is not None else load_prompts()
        self.logger = logging.getLogger(__name__)
        self._client: Optional[genai.Client] = None

        params = (self.prompts.get("parameters") or {}).get("translation") or {}
        self.max_attempts = int(params.get("max_attempts", 5))
        self.base_delay_ms = int(params.get("base_delay_ms", 1000))

    def is_available(self) -> bool:
        return bool(self.api_key)

    def supports_language(self, language: str) -> bool:
        return language in SUPPORTED_LANGUAGES

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def build_prompt(self, article: Article, target_language: str) -> str:
        template = (self.prompts.get("translation") or {}).get("template", "")
        return template.format(
            language_name=language_name(target_language),
            title=article.title,
            content=article.content,
        )

    async def translate(self, article: Article, target_language: str) -> Article:
        if not self.api_key:
            raise ProviderUnavailableError("Gemini API key not configured")

        self.logger.info(
            f"Translating article to {language_name(target_language)} ({target_language}) "
            f"for date: {article.date} using model: {self.model}"
        )
        prompt = self.build_prompt(article, target_language)

        async def _attempt() -> str:
            response = await self._get_client().aio.models.generate_content(
                model=self.model,
                contents=prompt,
            )
            return response.text or ""

        def _log_retry(attempt: int, error: Exception) -> None:
            self.logger.warning(f"Gemini translation attempt {attempt} failed for {target_language}: {error}")

        translated_text = await retry_with_backoff(
            _attempt,
            max_attempts=self.max_attempts,
            base_delay_ms=self.base_delay_ms,
            on_retry=_log_retry,
        )

        self.logger.info(f"Gemini translation completed for {target_language}")
        return article.translated(
            title=extract_title(translated_text, article.title),
            content=translated_text,
            language=target_language,
        )
