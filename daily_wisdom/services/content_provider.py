"""
Content provider interface.

A provider's job is to produce raw article text plus the citations it
discovered for a date. Normalization into an Article happens in the
pipeline, and retries are the caller's concern.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol


@dataclass(frozen=True)
class Citation:
    uri: str
    title: Optional[str] = None


@dataclass
class RawResponse:
    text: Optional[str]
    citations: List[Citation] = field(default_factory=list)


class ContentProvider(Protocol):
    name: str

    def is_available(self) -> bool: ...

    async def generate(self, date: str) -> RawResponse: ...
