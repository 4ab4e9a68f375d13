from typing import Dict, List

from .config import DIRECTIVE_ATTR_RE, DIRECTIVE_RE
from .models import Directive


def parse_attrs(raw: str) -> Dict[str, str]:
    """Parse `key="value" key2='v' key3=bare flag` into a dict; flags map to ''."""
    attrs: Dict[str, str] = {}
    for match in DIRECTIVE_ATTR_RE.finditer(raw or ""):
        value = match.group("dq")
        if value is None:
            value = match.group("sq")
        if value is None:
            value = match.group("bare")
        attrs[match.group("key")] = value if value is not None else ""
    return attrs


def find_directives(body: str) -> List[Directive]:
    directives = []
    for match in DIRECTIVE_RE.finditer(body):
        directives.append(
            Directive(
                name=match.group("name").lower(),
                attrs=parse_attrs(match.group("attrs")),
                closing=bool(match.group("closing")),
                self_closing=bool(match.group("selfclose")),
                start=match.start(),
                end=match.end(),
            )
        )
    return directives
