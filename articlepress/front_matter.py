"""Metadata block handling: split a document, parse the block, write it back."""

import re
from typing import Dict, List, Optional, Tuple

from .config import FRONT_MATTER_DELIMITER
from .errors import MalformedDocument

KEY_LINE_RE = re.compile(r"^(?P<key>[A-Za-z_][\w.-]*)\s*:(?:\s+(?P<value>.*?))?\s*$")
LIST_ITEM_RE = re.compile(r"^\s+-\s*(?P<value>.*?)\s*$")


def split_front_matter(text: str, source: Optional[str] = None) -> Tuple[List[str], str]:
    """Return the raw metadata lines and the body that follows the closing delimiter."""
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines(keepends=True)

    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start >= len(lines) or lines[start].strip() != FRONT_MATTER_DELIMITER:
        raise MalformedDocument("document must open with a '---' metadata delimiter", source)

    end: Optional[int] = None
    for idx in range(start + 1, len(lines)):
        if lines[idx].rstrip() == FRONT_MATTER_DELIMITER:
            end = idx
            break
    if end is None:
        raise MalformedDocument("metadata block is not closed with '---'", source)

    meta_lines = [ln.rstrip("\r\n") for ln in lines[start + 1:end]]
    body = "".join(lines[end + 1:])
    return meta_lines, body


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        inner = value[1:-1]
        return re.sub(r'\\(["\\])', r"\1", inner)
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("''", "'")
    return value


def _split_inline_list(inner: str) -> List[str]:
    items = []
    current = []
    quote = None
    depth = 0
    escaped = False
    for ch in inner:
        if quote:
            current.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\" and quote == '"':
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
            current.append(ch)
        elif ch == "[":
            depth += 1
            current.append(ch)
        elif ch == "]":
            depth -= 1
            current.append(ch)
        elif ch == "," and depth == 0:
            items.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    tail = "".join(current).strip()
    if tail or items:
        items.append(tail)
    return [item for item in items if item]


def parse_scalar(raw: str):
    value = raw.strip()
    if value.startswith("[") and value.endswith("]"):
        return [parse_scalar(item) for item in _split_inline_list(value[1:-1])]
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    return _unquote(value)


def parse_front_matter(lines: List[str], source: Optional[str] = None) -> Dict[str, object]:
    metadata: Dict[str, object] = {}
    list_key: Optional[str] = None

    for lineno, line in enumerate(lines, start=2):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        item = LIST_ITEM_RE.match(line)
        if item:
            if list_key is None:
                raise MalformedDocument(f"list item without a key on line {lineno}: {stripped}", source)
            current = metadata.get(list_key)
            if not isinstance(current, list):
                current = []
                metadata[list_key] = current
            current.append(parse_scalar(item.group("value")))
            continue

        if line[:1].isspace():
            raise MalformedDocument(f"unexpected indentation on line {lineno}: {stripped}", source)

        match = KEY_LINE_RE.match(line)
        if not match:
            raise MalformedDocument(f"invalid metadata line {lineno}: {stripped}", source)
        key = match.group("key")
        raw_value = match.group("value")
        if raw_value is None or raw_value == "":
            # Empty value: either a dash list follows or the key is blank
            metadata[key] = None
            list_key = key
        else:
            metadata[key] = parse_scalar(raw_value)
            list_key = None

    return metadata


def quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def dump_scalar(value) -> str:
    """Inverse of parse_scalar for one value, nested lists included."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "[" + ", ".join(dump_scalar(v) for v in value) + "]"
    if value is None:
        return quote("")
    return quote(str(value))


def dump_value(key: str, value) -> List[str]:
    if isinstance(value, (list, tuple, set, frozenset)):
        if not value:
            return [f"{key}: []"]
        return [f"{key}:"] + [f"  - {dump_scalar(v)}" for v in value]
    if value is None:
        return [f"{key}:"]
    return [f"{key}: {dump_scalar(value)}"]
