"""
Translation provider interface and quota model.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from daily_wisdom.models.article import Article


@dataclass(frozen=True)
class QuotaInfo:
    character_count: int
    character_limit: int
    remaining: int
    percentage_used: float

    @classmethod
    def from_usage(cls, character_count: int, character_limit: int) -> "QuotaInfo":
        remaining = max(character_limit - character_count, 0)
        percentage = (character_count / character_limit * 100) if character_limit > 0 else 100.0
        return cls(
            character_count=character_count,
            character_limit=character_limit,
            remaining=remaining,
            percentage_used=percentage,
        )


class TranslationProvider(Protocol):
    name: str

    def is_available(self) -> bool: ...

    def supports_language(self, language: str) -> bool:
        """False when the provider has no backend code for the language."""
        ...

    async def translate(self, article: Article, target_language: str) -> Article: ...


@runtime_checkable
class QuotaAwareTranslationProvider(TranslationProvider, Protocol):
    async def check_quota(self, force_refresh: bool = False) -> QuotaInfo: ...
