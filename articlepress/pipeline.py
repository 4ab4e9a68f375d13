import os
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

import requests

from .collection import ArticleCollection
from .config import DEFAULT_REQUEST_DELAY, DOCUMENT_SUFFIXES
from .errors import ArticleError, MalformedDocument
from .http_client import build_session, fetch_document
from .loader import dump_document, load_article
from .models import ArticleRecord, RenderedArticle
from .renderer import ArticleRenderer, render_article
from .utils import ensure_dir, safe_filename

# (source identity, callable returning the document text)
DocumentSource = Tuple[str, Callable[[], str]]

# Failures that abort one document but never the batch
DOCUMENT_ERRORS = (ArticleError, OSError, requests.RequestException)


@dataclass
class BuildReport:
    built: List[Tuple[str, str]] = field(default_factory=list)  # (slug, output path)
    failures: List[Tuple[str, Exception]] = field(default_factory=list)  # (source, error)

    @property
    def ok(self) -> bool:
        return not self.failures


def build_article(
    text: str,
    source: Optional[str],
    renderer: ArticleRenderer,
    log_fn: Callable[[str], None],
) -> RenderedArticle:
    record = load_article(text, source=source)
    log_fn(f"Loaded '{record.title}' as {record.slug}")
    return render_article(record, renderer)


def collect_documents(input_dir: str) -> List[str]:
    paths = []
    for root, dirs, files in os.walk(input_dir):
        dirs[:] = sorted(d for d in dirs if not d.startswith("."))
        for name in files:
            if name.lower().endswith(DOCUMENT_SUFFIXES) and not name.startswith("."):
                paths.append(os.path.join(root, name))
    return sorted(paths)


def _read_file(path: str) -> Callable[[], str]:
    def read() -> str:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except UnicodeDecodeError as exc:
            raise MalformedDocument(f"not valid UTF-8: {exc}", path) from exc

    return read


def build_documents(
    documents: Iterable[DocumentSource],
    output_dir: str,
    renderer: Optional[ArticleRenderer] = None,
    log_fn: Callable[[str], None] = lambda *_: None,
    fail_fast: bool = False,
    front_matter: bool = False,
) -> BuildReport:
    """Load, aggregate, render and write each document; one failure never blocks the others."""
    renderer = renderer or ArticleRenderer(log_fn=log_fn)
    report = BuildReport()
    collection = ArticleCollection()

    def fail(source: str, exc: Exception) -> None:
        log_fn(f"Failed {source}: {exc}")
        report.failures.append((source, exc))
        if fail_fast:
            raise exc

    for source, read in documents:
        try:
            record = load_article(read(), source=source)
            collection.add(record)
        except DOCUMENT_ERRORS as exc:
            fail(source, exc)

    if len(collection):
        ensure_dir(output_dir)

    for record in collection.by_date():
        try:
            rendered = render_article(record, renderer)
            out_path = _write_output(rendered, output_dir, front_matter)
        except DOCUMENT_ERRORS as exc:
            fail(record.source or record.slug, exc)
            continue
        report.built.append((record.slug, out_path))
        log_fn(f"Wrote {out_path}")

    log_fn(f"Articles built: {len(report.built)}, failed: {len(report.failures)}.")
    return report


def _write_output(rendered: RenderedArticle, output_dir: str, front_matter: bool) -> str:
    record: ArticleRecord = rendered.record
    out_path = os.path.join(output_dir, f"{safe_filename(record.slug)}.html")
    content = dump_document(record, rendered.html) if front_matter else rendered.html
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(content)
    return out_path


def build_site(
    input_dir: str,
    output_dir: str,
    renderer: Optional[ArticleRenderer] = None,
    log_fn: Callable[[str], None] = lambda *_: None,
    fail_fast: bool = False,
    front_matter: bool = False,
) -> BuildReport:
    paths = collect_documents(input_dir)
    log_fn(f"Found {len(paths)} documents in {input_dir}")
    return build_documents(
        ((path, _read_file(path)) for path in paths),
        output_dir,
        renderer=renderer,
        log_fn=log_fn,
        fail_fast=fail_fast,
        front_matter=front_matter,
    )


def build_urls(
    urls: Iterable[str],
    output_dir: str,
    renderer: Optional[ArticleRenderer] = None,
    log_fn: Callable[[str], None] = lambda *_: None,
    session: Optional[requests.Session] = None,
    request_delay: float = DEFAULT_REQUEST_DELAY,
    fail_fast: bool = False,
    front_matter: bool = False,
) -> BuildReport:
    session = session or build_session()

    def fetcher(url: str) -> Callable[[], str]:
        return lambda: fetch_document(session, url, request_delay, log_fn)

    return build_documents(
        ((url, fetcher(url)) for url in urls),
        output_dir,
        renderer=renderer,
        log_fn=log_fn,
        fail_fast=fail_fast,
        front_matter=front_matter,
    )
