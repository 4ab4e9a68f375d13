import time
from typing import Callable

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import TEXT_CONTENT_TYPES, USER_AGENT
from .errors import MalformedDocument


def build_session() -> requests.Session:
    """Create a requests session with retry/backoff and an identifying User-Agent."""
    sess = requests.Session()
    retry = Retry(
        total=4,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods={"GET", "HEAD"},
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    sess.mount("http://", adapter)
    sess.mount("https://", adapter)
    sess.headers.update({"User-Agent": USER_AGENT})
    return sess


def _split_content_type(header: str):
    """'text/markdown; charset=latin-1' -> ('text/markdown', 'latin-1')."""
    parts = [p.strip() for p in (header or "").split(";")]
    mime = parts[0].lower()
    charset = None
    for param in parts[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            charset = value.strip().strip('"')
    return mime, charset


def fetch_document(
    session: requests.Session,
    url: str,
    request_delay: float,
    log_fn: Callable[[str], None],
) -> str:
    """Download a raw article document.

    Only textual responses are accepted (raw GitHub files come back as
    text/plain). The body is decoded with the declared charset, UTF-8
    otherwise.
    """
    log_fn(f"Requesting {url}")
    try:
        resp = session.get(url, timeout=20)
        resp.raise_for_status()
    except requests.RequestException as exc:
        log_fn(f"Request failed for {url}: {exc}")
        raise
    finally:
        if request_delay:
            time.sleep(request_delay)

    mime, charset = _split_content_type(resp.headers.get("content-type", ""))
    if mime and not mime.startswith(TEXT_CONTENT_TYPES):
        log_fn(f"Skipping {url}: content type {mime} is not a text document")
        raise MalformedDocument(f"expected a text document, got content type '{mime}'", url)
    try:
        return resp.content.decode(charset or "utf-8", errors="replace")
    except LookupError:
        log_fn(f"Unknown charset '{charset}' for {url}; decoding as UTF-8")
        return resp.content.decode("utf-8", errors="replace")
