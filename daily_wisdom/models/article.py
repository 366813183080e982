"""
Article models for the daily content pipeline.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from daily_wisdom.models.languages import BASE_LANGUAGE


@dataclass(frozen=True)
class Source:
    """A citation discovered while generating the article."""

    title: str
    uri: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "uri": self.uri}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Source":
        return cls(title=data.get("title") or "Source", uri=data["uri"])


@dataclass(frozen=True)
class Article:
    """
    One article for a (date, language) pair.

    The base-language article is authoritative; every other language is a
    translation of it and shares its sources.
    """

    id: str
    date: str
    title: str
    content: str
    language: str = BASE_LANGUAGE
    is_translated: bool = False
    sources: List[Source] = field(default_factory=list)

    def translated(self, title: str, content: str, language: str) -> "Article":
        """Derive the translated copy of this article."""
        return replace(
            self,
            id=f"{self.date}:{language}",
            title=title,
            content=content,
            language=language,
            is_translated=True,
            sources=list(self.sources),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "title": self.title,
            "content": self.content,
            "language": self.language,
            "isTranslated": self.is_translated,
            "sources": [s.to_dict() for s in self.sources],
        }


@dataclass(frozen=True)
class GenerationOptions:
    """Options for a daily content run."""

    translations_only: bool = False
    force: bool = False


@dataclass
class DailyContentReport:
    """Per-date outcome of a daily content run (informational only)."""

    date: str
    base_generated: bool = False
    translated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    aborted: Optional[str] = None

    def summary(self) -> str:
        if self.aborted:
            return f"{self.date}: aborted ({self.aborted})"
        return (
            f"{self.date}: base {'generated' if self.base_generated else 'reused'}, "
            f"{len(self.translated)} translated, {len(self.skipped)} skipped, {len(self.failed)} failed"
        )
