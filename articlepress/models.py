from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class ArticleRecord:
    slug: str
    title: str
    date: datetime
    last_modified: datetime
    categories: FrozenSet[str] = frozenset()
    description: Optional[str] = None
    body: str = ""
    # Path or URL the document was loaded from (for error reports)
    source: Optional[str] = field(default=None, compare=False)
    # Metadata keys without a dedicated field, in document order
    extra: Tuple[Tuple[str, object], ...] = ()

    def metadata(self) -> Dict[str, object]:
        """Everything except the body, keyed by field name."""
        return {
            "slug": self.slug,
            "title": self.title,
            "date": self.date,
            "last_modified": self.last_modified,
            "categories": self.categories,
            "description": self.description,
            "extra": self.extra,
        }


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    anchor: str


@dataclass(frozen=True)
class Directive:
    name: str
    attrs: Dict[str, str]
    closing: bool
    self_closing: bool
    # Offsets of the tag within the body it was parsed from
    start: int
    end: int


@dataclass(frozen=True)
class RenderedArticle:
    record: ArticleRecord
    html: str
