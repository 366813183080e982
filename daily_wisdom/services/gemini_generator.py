import logging
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from daily_wisdom.config import load_prompts
from daily_wisdom.services.content_provider import Citation, RawResponse
from daily_wisdom.utils.dates import date_seed, format_display_date


class GeminiGenerator:
    """
    Article generation with Gemini and Google Search grounding.

    The seed is derived from the date, so the same date asks the model the
    same way every time.
    """

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

        gen_params = (self.prompts.get("parameters") or {}).get("generation") or {}
        self.temperature = float(gen_params.get("temperature", 0.7))

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def build_prompt(self, date: str) -> str:
        template = (self.prompts.get("generation") or {}).get("template", "")
        return template.format(display_date=format_display_date(date))

    async def generate(self, date: str) -> RawResponse:
        self.logger.info(f"Calling Gemini (model: {self.model}) for date: {date}")

        config = types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
            seed=date_seed(date),
            temperature=self.temperature,
        )
        response = await self._get_client().aio.models.generate_content(
            model=self.model,
            contents=self.build_prompt(date),
            config=config,
        )

        self.logger.info("✅ Gemini generation call successful")
        return RawResponse(text=response.text, citations=self._extract_citations(response))

    @staticmethod
    def _extract_citations(response: Any) -> List[Citation]:
        """Pull web citations out of the first candidate's grounding metadata."""
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return []
        metadata = getattr(candidates[0], "grounding_metadata", None)
        chunks = getattr(metadata, "grounding_chunks", None) or []

        citations: List[Citation] = []
        for chunk in chunks:
            web = getattr(chunk, "web", None)
            uri = getattr(web, "uri", None) if web else None
            if uri:
                citations.append(Citation(uri=uri, title=getattr(web, "title", None)))
        return citations
