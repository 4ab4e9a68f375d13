from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .config import (
    DIRECTIVE_RE,
    FIGURE_DIRECTIVES,
    HEADING_RE,
    IMAGE_ATTRIBUTES,
    IMAGE_DIRECTIVES,
    TOC_DIRECTIVES,
)
from .directives import find_directives
from .errors import ArticleError, MalformedDirective, MissingAttribute, UnknownDirective
from .models import ArticleRecord, Directive, Heading, RenderedArticle
from .utils import collapse_whitespace, slugify, unique_anchor

# Directives that may wrap content with an explicit {{< /name >}}
BLOCK_DIRECTIVES = TOC_DIRECTIVES


@dataclass
class Placement:
    directive: Directive
    start: int
    end: int
    inner: Optional[str] = None


@dataclass
class HeadingMatch:
    heading: Heading
    # Where ` id="..."` goes when the heading had no id of its own
    insert_at: Optional[int]


class ArticleRenderer:
    def __init__(
        self,
        strict: bool = True,
        toc_title: Optional[str] = None,
        log_fn: Optional[Callable[[str], None]] = None,
    ):
        self.strict = strict
        self.toc_title = toc_title
        self.log_fn = log_fn or (lambda *_: None)

    def render(self, body: str, source: Optional[str] = None) -> str:
        try:
            placements = self._plan(body)
            headings = self._collect_headings(body, placements)
            return self._assemble(body, placements, headings)
        except ArticleError as exc:
            raise exc.with_source(source)

    # ---- pass 0: pair directive tags ----
    def _plan(self, body: str) -> List[Placement]:
        tokens = find_directives(body)
        placements: List[Placement] = []
        i = 0
        while i < len(tokens):
            tok = tokens[i]
            if not self._is_known(tok.name):
                if self.strict:
                    raise UnknownDirective(tok.name)
                self.log_fn(f"Passing through unknown directive '{tok.name}'")
                i += 1
                continue
            if tok.closing:
                raise MalformedDirective(f"closing '{{{{< /{tok.name} >}}}}' without an opening directive")

            if tok.name in BLOCK_DIRECTIVES and not tok.self_closing:
                close_idx = self._find_close(tokens, i)
                if close_idx is not None:
                    close = tokens[close_idx]
                    placements.append(Placement(tok, tok.start, close.end, body[tok.end:close.start]))
                    i = close_idx + 1
                    continue
            placements.append(Placement(tok, tok.start, tok.end))
            i += 1
        return placements

    def _find_close(self, tokens: List[Directive], open_idx: int) -> Optional[int]:
        name = tokens[open_idx].name
        for j in range(open_idx + 1, len(tokens)):
            tok = tokens[j]
            if tok.name != name:
                continue
            if tok.closing:
                return j
            # A second opener before any close: the first one is self-contained
            return None
        return None

    def _is_known(self, name: str) -> bool:
        return name in TOC_DIRECTIVES or name in IMAGE_DIRECTIVES or name in FIGURE_DIRECTIVES

    # ---- pass 1: headings ----
    def _collect_headings(self, body: str, placements: List[Placement]) -> List[HeadingMatch]:
        # Blank out directive text (attributes, block content) keeping offsets
        masked = body
        for p in placements:
            masked = masked[:p.start] + " " * (p.end - p.start) + masked[p.end:]
        matches = list(HEADING_RE.finditer(masked))

        parsed: List[Tuple[int, str, Optional[str], int]] = []
        taken = set()
        for m in matches:
            fragment = DIRECTIVE_RE.sub("", m.group(0))
            tag = BeautifulSoup(fragment, "html.parser").find(f"h{m.group('level')}")
            if not isinstance(tag, Tag):
                continue
            existing = tag.get("id")
            if existing:
                taken.add(existing)
            parsed.append((int(m.group("level")), collapse_whitespace(tag.get_text(" ")), existing, m.start("attrs")))

        headings: List[HeadingMatch] = []
        for level, text, existing, insert_at in parsed:
            if not text:
                continue
            if existing:
                headings.append(HeadingMatch(Heading(level, text, existing), None))
            else:
                anchor = unique_anchor(slugify(text), taken)
                headings.append(HeadingMatch(Heading(level, text, anchor), insert_at))
        return headings

    # ---- pass 2: substitute ----
    def _assemble(self, body: str, placements: List[Placement], headings: List[HeadingMatch]) -> str:
        edits: List[Tuple[int, int, str]] = []
        has_toc = any(p.directive.name in TOC_DIRECTIVES for p in placements)

        for p in placements:
            edits.append((p.start, p.end, self._expand(p, [h.heading for h in headings])))
        if has_toc:
            for h in headings:
                if h.insert_at is not None:
                    edits.append((h.insert_at, h.insert_at, f' id="{h.heading.anchor}"'))

        edits.sort(key=lambda e: (e[0], e[1]))
        out = []
        pos = 0
        for start, end, replacement in edits:
            if start < pos:
                raise MalformedDirective(f"overlapping substitutions at offset {start}")
            out.append(body[pos:start])
            out.append(replacement)
            pos = end
        out.append(body[pos:])
        return "".join(out)

    def _expand(self, placement: Placement, headings: List[Heading]) -> str:
        directive = placement.directive
        if directive.name in TOC_DIRECTIVES:
            return self._render_toc(directive, headings, placement.inner)
        if directive.name in IMAGE_DIRECTIVES:
            return str(self._image_tag(BeautifulSoup("", "html.parser"), directive))
        return self._render_figure(directive)

    def _level_bound(self, directive: Directive, key: str, default: int) -> int:
        raw = directive.attrs.get(key)
        if raw is None or raw == "":
            return default
        try:
            value = int(raw)
        except ValueError:
            raise MalformedDirective(f"'{key}' of '{directive.name}' must be a heading level, got {raw!r}") from None
        if not 1 <= value <= 6:
            raise MalformedDirective(f"'{key}' of '{directive.name}' must be between 1 and 6, got {value}")
        return value

    def _render_toc(self, directive: Directive, headings: List[Heading], inner: Optional[str]) -> str:
        low = self._level_bound(directive, "min", 1)
        high = self._level_bound(directive, "max", 6)
        entries = [h for h in headings if low <= h.level <= high]

        caption = directive.attrs.get("title")
        if not caption and inner and inner.strip():
            caption = collapse_whitespace(BeautifulSoup(inner, "html.parser").get_text(" "))
        caption = caption or self.toc_title

        soup = BeautifulSoup("", "html.parser")
        nav = soup.new_tag("nav", attrs={"class": "toc"})
        if caption:
            title = soup.new_tag("p", attrs={"class": "toc-title"})
            title.string = caption
            nav.append(title)
        root = soup.new_tag("ul")
        nav.append(root)

        # [level, list tag, last item appended to that list]
        stack: List[list] = [[entries[0].level if entries else 1, root, None]]
        for heading in entries:
            while len(stack) > 1 and heading.level < stack[-1][0]:
                stack.pop()
            parent = stack[-1][2]
            if heading.level > stack[-1][0] and parent is not None:
                # One nested list per item, even when levels are skipped
                sub = parent.find("ul", recursive=False)
                if sub is None:
                    sub = soup.new_tag("ul")
                    parent.append(sub)
                stack.append([heading.level, sub, None])
            item = soup.new_tag("li")
            link = soup.new_tag("a", href=f"#{heading.anchor}")
            link.string = heading.text
            item.append(link)
            stack[-1][1].append(item)
            stack[-1][2] = item
        return str(nav)

    def _image_tag(self, soup: BeautifulSoup, directive: Directive) -> Tag:
        src = (directive.attrs.get("src") or "").strip()
        if not src:
            raise MissingAttribute(directive.name, "src")
        attrs: Dict[str, str] = {"src": src}
        for key in IMAGE_ATTRIBUTES:
            if key != "src" and key in directive.attrs:
                attrs[key] = directive.attrs[key]
        return soup.new_tag("img", attrs=attrs)

    def _render_figure(self, directive: Directive) -> str:
        soup = BeautifulSoup("", "html.parser")
        figure = soup.new_tag("figure")
        figure.append(self._image_tag(soup, directive))
        caption = directive.attrs.get("caption")
        if caption:
            figcaption = soup.new_tag("figcaption")
            figcaption.string = caption
            figure.append(figcaption)
        return str(figure)


def render_article(record: ArticleRecord, renderer: Optional[ArticleRenderer] = None) -> RenderedArticle:
    renderer = renderer or ArticleRenderer()
    return RenderedArticle(record=record, html=renderer.render(record.body, record.source))
