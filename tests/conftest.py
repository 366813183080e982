"""Shared fakes and fixtures for the pipeline tests."""

from typing import Dict, List, Optional, Set, Tuple

import pytest

from daily_wisdom.models.article import Article, Source
from daily_wisdom.models.languages import BASE_LANGUAGE, SUPPORTED_LANGUAGES
from daily_wisdom.pipeline.daily_content_coordinator import DailyContentCoordinator
from daily_wisdom.pipeline.generation_orchestrator import GenerationOrchestrator
from daily_wisdom.pipeline.translation_orchestrator import TranslationOrchestrator
from daily_wisdom.services.content_provider import Citation, RawResponse
from daily_wisdom.services.translation_chain import TranslationProviderChain

ARTICLE_TEXT = "# The Stoic Sympatheia\n\n## Origins\n\nEverything is connected."


class FakeRepository:
    """In-memory ArticleRepository."""

    def __init__(self):
        self.articles: Dict[Tuple[str, str], Article] = {}
        self.saves: List[Article] = []
        # Dates whose existence check says yes while the fetch finds nothing
        self.phantom_dates: Set[str] = set()

    async def get_article(self, date, language=BASE_LANGUAGE) -> Optional[Article]:
        return self.articles.get((date, language))

    async def save_article(self, article: Article) -> None:
        self.saves.append(article)
        self.articles[(article.date, article.language)] = article

    async def has_article_for_date(self, date) -> bool:
        return date in self.phantom_dates or (date, BASE_LANGUAGE) in self.articles

    async def has_translation(self, date, language) -> bool:
        return (date, language) in self.articles

    async def reset_database(self) -> None:
        self.articles.clear()

    async def get_all_available_dates(self) -> List[str]:
        return sorted({d for d, lang in self.articles if lang == BASE_LANGUAGE}, reverse=True)


class FakeContentProvider:
    name = "fake-generator"

    def __init__(self, available: bool = True, text: Optional[str] = ARTICLE_TEXT, failures: int = 0):
        self.available = available
        self.text = text
        self.failures = failures
        self.calls: List[str] = []
        self.gate = None

    def is_available(self) -> bool:
        return self.available

    async def generate(self, date: str) -> RawResponse:
        self.calls.append(date)
        if self.gate is not None:
            await self.gate.wait()
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("transient generation failure")
        return RawResponse(
            text=self.text,
            citations=[
                Citation(uri="https://example.com/a", title="A"),
                Citation(uri="https://example.com/b"),
                Citation(uri="https://example.com/a", title="A again"),
            ],
        )


class FakeTranslator:
    def __init__(
        self,
        name: str = "fake-translator",
        available: bool = True,
        languages: Optional[Set[str]] = None,
        failing_languages: Optional[Set[str]] = None,
        error: Optional[Exception] = None,
    ):
        self.name = name
        self.available = available
        self.languages = languages if languages is not None else set(SUPPORTED_LANGUAGES)
        self.failing_languages = failing_languages or set()
        self.error = error
        self.calls: List[str] = []

    def is_available(self) -> bool:
        return self.available

    def supports_language(self, language: str) -> bool:
        return language in self.languages

    async def translate(self, article: Article, target_language: str) -> Article:
        self.calls.append(target_language)
        if self.error is not None:
            raise self.error
        if target_language in self.failing_languages:
            raise RuntimeError(f"{self.name} cannot translate {target_language}")
        return article.translated(
            title=f"[{self.name}:{target_language}] {article.title}",
            content=f"[{self.name}:{target_language}] {article.content}",
            language=target_language,
        )


@pytest.fixture(autouse=True)
def sleep_calls(monkeypatch) -> List[float]:
    """Backoff sleeps are recorded (in seconds) instead of waited."""
    calls: List[float] = []

    async def _fake_sleep(seconds: float) -> None:
        calls.append(seconds)

    monkeypatch.setattr("daily_wisdom.utils.retry._sleep", _fake_sleep)
    return calls


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def content_provider() -> FakeContentProvider:
    return FakeContentProvider()


@pytest.fixture
def primary() -> FakeTranslator:
    return FakeTranslator(name="primary")


@pytest.fixture
def fallback() -> FakeTranslator:
    return FakeTranslator(name="fallback")


@pytest.fixture
def generation(content_provider, repository) -> GenerationOrchestrator:
    return GenerationOrchestrator(content_provider, repository)


@pytest.fixture
def chain(primary, fallback) -> TranslationProviderChain:
    return TranslationProviderChain(primary=primary, fallback=fallback)


@pytest.fixture
def translation(chain, repository) -> TranslationOrchestrator:
    return TranslationOrchestrator(chain, repository)


@pytest.fixture
def coordinator(generation, translation, repository) -> DailyContentCoordinator:
    return DailyContentCoordinator(generation, translation, repository)


def make_article(date: str = "2026-01-10", title: str = "Kintsugi", content: str = "# Kintsugi\n\nGold seams.") -> Article:
    return Article(
        id=date,
        date=date,
        title=title,
        content=content,
        sources=[Source(title="Wiki", uri="https://en.wikipedia.org/wiki/Kintsugi")],
    )


@pytest.fixture
def base_article() -> Article:
    return make_article()
