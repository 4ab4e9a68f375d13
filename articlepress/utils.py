import hashlib
import os
import re
import unicodedata
from datetime import date, datetime, timezone
from typing import Optional

from .errors import InvalidTimestamp


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def safe_filename(name: str) -> str:
    cleaned = re.sub(r"[<>:\"/\\\\|?*]+", "_", name)
    return cleaned.strip() or "file"


def slugify(text: str) -> str:
    """Lowercase ASCII, dash separated; accents are folded. May return ''."""
    folded = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    candidate = re.sub(r"[^a-z0-9]+", "-", folded.strip().lower())
    return candidate.strip("-")


def short_hash(text: str, length: int = 10) -> str:
    return hashlib.sha1((text or "").encode("utf-8")).hexdigest()[:length]


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def unique_anchor(base: str, taken: set) -> str:
    anchor = base or "section"
    if anchor not in taken:
        taken.add(anchor)
        return anchor
    n = 1
    while f"{anchor}-{n}" in taken:
        n += 1
    anchor = f"{anchor}-{n}"
    taken.add(anchor)
    return anchor


def parse_timestamp(value: object, field: str, source: Optional[str] = None) -> datetime:
    """Parse an ISO 8601 date or date-time; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidTimestamp(field, value, source) from None
    else:
        raise InvalidTimestamp(field, value, source)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text
