import logging
from typing import Optional

from daily_wisdom.errors import ProviderUnavailableError
from daily_wisdom.models.article import Article
from daily_wisdom.models.languages import BASE_LANGUAGE
from daily_wisdom.pipeline.article_builder import ArticleBuilder
from daily_wisdom.services.article_repository import ArticleRepository
from daily_wisdom.services.content_provider import ContentProvider
from daily_wisdom.utils.caching import get_or_create


class GenerationOrchestrator:
    """
    Cache-or-generate for the base article of a date.

    No retries here: the coordinator decides what to retry.
    """

    def __init__(
        self,
        provider: ContentProvider,
        repository: ArticleRepository,
        builder: Optional[ArticleBuilder] = None,
    ):
        self.provider = provider
        self.repository = repository
        self.builder = builder or ArticleBuilder()
        self.logger = logging.getLogger(__name__)

    async def generate_article(self, date: str, force: bool = False) -> Article:
        self.logger.info(f"Generating article for date: {date}{' (forced)' if force else ''}")

        async def _cached() -> Optional[Article]:
            article = await self.repository.get_article(date, BASE_LANGUAGE)
            if article is not None:
                self.logger.info("Article found in cache")
            return article

        return await get_or_create(_cached, lambda: self._generate(date), force=force)

    async def _generate(self, date: str) -> Article:
        if not self.provider.is_available():
            raise ProviderUnavailableError("No article generation provider available")

        raw = await self.provider.generate(date)
        article = self.builder.build(date, raw)
        await self.repository.save_article(article)

        self.logger.info(f"Article generated and saved successfully: \"{article.title}\"")
        return article
