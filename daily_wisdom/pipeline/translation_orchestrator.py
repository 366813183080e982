import logging
from typing import Optional

from daily_wisdom.models.article import Article
from daily_wisdom.models.languages import BASE_LANGUAGE, is_supported
from daily_wisdom.services.article_repository import ArticleRepository
from daily_wisdom.services.translation_chain import TranslationProviderChain
from daily_wisdom.utils.caching import get_or_create


class TranslationOrchestrator:
    """Cache-or-translate for one (date, language) derived from the base article."""

    def __init__(self, chain: TranslationProviderChain, repository: ArticleRepository):
        self.chain = chain
        self.repository = repository
        self.logger = logging.getLogger(__name__)

    async def translate_article(self, base_article: Article, target_language: str, force: bool = False) -> Article:
        if not is_supported(target_language):
            raise ValueError(f"Unsupported language: {target_language}")
        if target_language == BASE_LANGUAGE:
            raise ValueError(f"Cannot translate into the base language ({BASE_LANGUAGE})")

        await self.chain.describe_status()
        self.logger.info(f"Translating article to {target_language} for date: {base_article.date}")

        async def _cached() -> Optional[Article]:
            article = await self.repository.get_article(base_article.date, target_language)
            if article is not None:
                self.logger.info(f"Translation {base_article.date}/{target_language} found in cache")
            return article

        async def _translate() -> Article:
            translated = await self.chain.translate(base_article, target_language)
            # Providers own wording; identity and citations always come from the base article
            article = base_article.translated(
                title=translated.title,
                content=translated.content,
                language=target_language,
            )
            await self.repository.save_article(article)
            return article

        return await get_or_create(_cached, _translate, force=force)
