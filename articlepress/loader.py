import os
import re
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

from .config import BUNDLE_INDEX_STEMS, CATEGORY_KEYS, FRONT_MATTER_DELIMITER, LAST_MODIFIED_KEYS
from .errors import InvalidTimestamp, MalformedDocument, MissingRequiredField
from .front_matter import dump_value, parse_front_matter, split_front_matter
from .models import ArticleRecord
from .utils import format_timestamp, parse_timestamp, short_hash, slugify

KNOWN_KEYS = {"slug", "title", "date", "description", *LAST_MODIFIED_KEYS, *CATEGORY_KEYS}


def slug_from_source(source: Optional[str]) -> str:
    """Derive a slug from a file path or URL; page bundles use their folder name."""
    if not source:
        return ""
    path = urlparse(source).path if "://" in source else source
    parts = [p for p in re.split(r"[\\/]+", path) if p]
    if not parts:
        return ""
    stem, _ = os.path.splitext(parts[-1])
    if stem.lower() in BUNDLE_INDEX_STEMS and len(parts) > 1:
        stem = parts[-2]
    return slugify(stem)


def _require_text(metadata: Dict[str, object], key: str, source: Optional[str]) -> str:
    value = metadata.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingRequiredField(key, source)
    if not isinstance(value, str):
        raise MalformedDocument(f"field '{key}' must be a string, got {type(value).__name__}", source)
    return value.strip()


def _categories(metadata: Dict[str, object], source: Optional[str]) -> frozenset:
    names: List[str] = []
    for key in CATEGORY_KEYS:
        value = metadata.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            values: Iterable = [value]
        elif isinstance(value, list):
            values = value
        else:
            raise MalformedDocument(f"field '{key}' must be a string or a list", source)
        for item in values:
            name = str(item).strip()
            if name:
                names.append(name)
    return frozenset(names)


def _resolve_slug(
    explicit: Optional[str],
    metadata: Dict[str, object],
    title: str,
    date: datetime,
    source: Optional[str],
) -> str:
    candidates = [explicit, metadata.get("slug"), slug_from_source(source), title]
    for candidate in candidates:
        if isinstance(candidate, str):
            slug = slugify(candidate)
            if slug:
                return slug
    # Titles with nothing transliterable (e.g. CJK) still need a stable slug
    return f"article-{short_hash(title + date.isoformat())}"


def _freeze(value):
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def record_from_metadata(
    metadata: Dict[str, object],
    body: str,
    source: Optional[str] = None,
    slug: Optional[str] = None,
) -> ArticleRecord:
    title = _require_text(metadata, "title", source)

    raw_date = metadata.get("date")
    if raw_date is None or (isinstance(raw_date, str) and not raw_date.strip()):
        raise MissingRequiredField("date", source)
    date = parse_timestamp(raw_date, "date", source)

    last_modified = date
    for key in LAST_MODIFIED_KEYS:
        raw = metadata.get(key)
        if raw is None or raw == "":
            continue
        last_modified = parse_timestamp(raw, key, source)
        if last_modified < date:
            raise InvalidTimestamp(key, raw, source, reason="earlier than date")
        break

    description = metadata.get("description")
    if description is not None:
        description = str(description).strip() or None

    extra = tuple(
        (key, _freeze(value))
        for key, value in metadata.items()
        if key not in KNOWN_KEYS
    )

    return ArticleRecord(
        slug=_resolve_slug(slug, metadata, title, date, source),
        title=title,
        date=date,
        last_modified=last_modified,
        categories=_categories(metadata, source),
        description=description,
        body=body,
        source=source,
        extra=extra,
    )


def load_article(text: str, source: Optional[str] = None, slug: Optional[str] = None) -> ArticleRecord:
    meta_lines, body = split_front_matter(text, source)
    metadata = parse_front_matter(meta_lines, source)
    return record_from_metadata(metadata, body, source, slug)


def load_article_file(path: str) -> ArticleRecord:
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as exc:
        raise MalformedDocument(f"not valid UTF-8: {exc}", path) from exc
    return load_article(text, source=path)


def dump_document(record: ArticleRecord, body: Optional[str] = None) -> str:
    """Serialize a record back to document text; loading it yields the same metadata."""
    lines = [FRONT_MATTER_DELIMITER]
    lines += dump_value("slug", record.slug)
    lines += dump_value("title", record.title)
    lines += dump_value("date", format_timestamp(record.date))
    if record.last_modified != record.date:
        lines += dump_value("lastModified", format_timestamp(record.last_modified))
    lines += dump_value("categories", sorted(record.categories))
    if record.description is not None:
        lines += dump_value("description", record.description)
    for key, value in record.extra:
        lines += dump_value(key, value)
    lines.append(FRONT_MATTER_DELIMITER)
    return "\n".join(lines) + "\n" + (record.body if body is None else body)
