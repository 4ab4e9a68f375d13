from typing import Dict, Iterable, Iterator, List, Optional

from .errors import DuplicateSlug
from .models import ArticleRecord


class ArticleCollection:
    """Read-only aggregate of loaded articles, keyed by slug."""

    def __init__(self, records: Iterable[ArticleRecord] = ()):
        self._records: Dict[str, ArticleRecord] = {}
        for record in records:
            self.add(record)

    def add(self, record: ArticleRecord) -> None:
        existing = self._records.get(record.slug)
        if existing is not None:
            raise DuplicateSlug(record.slug, [existing.source, record.source])
        self._records[record.slug] = record

    def get(self, slug: str) -> Optional[ArticleRecord]:
        return self._records.get(slug)

    def __contains__(self, slug: object) -> bool:
        return slug in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ArticleRecord]:
        return iter(self._records.values())

    def by_date(self, newest_first: bool = True) -> List[ArticleRecord]:
        ordered = sorted(self._records.values(), key=lambda r: (r.date, r.slug))
        if newest_first:
            # Newest first, ties still broken by slug ascending
            ordered = sorted(ordered, key=lambda r: r.date, reverse=True)
        return ordered

    def categories(self) -> List[str]:
        names = set()
        for record in self._records.values():
            names.update(record.categories)
        return sorted(names)

    def in_category(self, name: str) -> List[ArticleRecord]:
        return [r for r in self.by_date() if name in r.categories]


def build_collection(records: Iterable[ArticleRecord]) -> ArticleCollection:
    return ArticleCollection(records)
