import logging
import re
from typing import List, Optional

from daily_wisdom.models.article import Article, Source
from daily_wisdom.models.languages import BASE_LANGUAGE
from daily_wisdom.services.content_provider import Citation, RawResponse

DEFAULT_TITLE = "Daily Wisdom"
DEFAULT_CONTENT = "No content generated"
DEFAULT_SOURCE_TITLE = "Source"

_H1_TITLE = re.compile(r"^#\s+(.+)$", re.MULTILINE)

logger = logging.getLogger(__name__)


def extract_title(text: Optional[str], default_title: str) -> str:
    """First level-1 Markdown heading, or the default."""
    if not text:
        return default_title
    match = _H1_TITLE.search(text)
    return match.group(1).strip() if match else default_title


def dedupe_sources(citations: List[Citation]) -> List[Source]:
    """Unique by uri, first-seen order kept."""
    seen = set()
    sources: List[Source] = []
    for citation in citations:
        if not citation.uri or citation.uri in seen:
            continue
        seen.add(citation.uri)
        sources.append(Source(title=citation.title or DEFAULT_SOURCE_TITLE, uri=citation.uri))
    return sources


class ArticleBuilder:
    """Turns a raw provider response into a base-language Article."""

    def __init__(self, default_title: str = DEFAULT_TITLE):
        self.default_title = default_title

    def build(self, date: str, response: RawResponse) -> Article:
        text = response.text
        if not text:
            logger.warning("Response text is empty, using fallback content")

        return Article(
            id=date,
            date=date,
            title=extract_title(text, self.default_title),
            content=text or DEFAULT_CONTENT,
            language=BASE_LANGUAGE,
            is_translated=False,
            sources=dedupe_sources(response.citations),
        )
