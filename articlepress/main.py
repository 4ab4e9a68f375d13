import argparse
import os
import sys
from datetime import datetime
from typing import List, Optional

from .config import DEFAULT_REQUEST_DELAY
from .pipeline import BuildReport, build_site, build_urls
from .renderer import ArticleRenderer
from .utils import ensure_dir


def cli_main(argv: Optional[List[str]] = None) -> int:
    """
    Build HTML fragments from article documents.

    Examples:
      articlepress --input-dir ./content/posts --output-dir ./public/fragments
      articlepress --url https://raw.githubusercontent.com/.../post.md
    """
    parser = argparse.ArgumentParser(description="Render article documents to HTML fragments")
    parser.add_argument("--input-dir", default=None, help="Directory of article documents (searched recursively)")
    parser.add_argument(
        "--url",
        action="append",
        default=[],
        help="URL of a raw article document (may be given more than once)",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Output directory (default: creates output_YYYYMMDD_HHMMSS in current dir)",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Leave unknown directives in the output instead of failing the article",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop at the first article that fails",
    )
    parser.add_argument(
        "--front-matter",
        action="store_true",
        help="Keep the metadata block at the top of each written file",
    )
    parser.add_argument("--toc-title", default=None, help="Caption for tables of contents without a title")
    parser.add_argument(
        "--delay",
        type=float,
        default=DEFAULT_REQUEST_DELAY,
        help=f"Seconds to sleep between HTTP requests (default: {DEFAULT_REQUEST_DELAY})",
    )
    args = parser.parse_args(argv)

    if not args.input_dir and not args.url:
        parser.error("one of --input-dir or --url is required")

    def log_fn(msg: str) -> None:
        ts = datetime.now().strftime("%H:%M:%S")
        print(f"[{ts}] {msg}")

    output_dir = args.output_dir
    if not output_dir:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_dir = os.path.join(os.getcwd(), f"output_{timestamp}")
    ensure_dir(output_dir)

    renderer = ArticleRenderer(strict=not args.lenient, toc_title=args.toc_title, log_fn=log_fn)
    reports: List[BuildReport] = []
    try:
        if args.input_dir:
            if not os.path.isdir(args.input_dir):
                log_fn(f"Error: {args.input_dir} is not a directory")
                return 1
            reports.append(
                build_site(
                    args.input_dir,
                    output_dir,
                    renderer=renderer,
                    log_fn=log_fn,
                    fail_fast=args.fail_fast,
                    front_matter=args.front_matter,
                )
            )
        if args.url:
            reports.append(
                build_urls(
                    args.url,
                    output_dir,
                    renderer=renderer,
                    log_fn=log_fn,
                    request_delay=args.delay,
                    fail_fast=args.fail_fast,
                    front_matter=args.front_matter,
                )
            )
    except Exception as exc:
        log_fn(f"Error: {exc}")
        return 1

    failed = sum(len(r.failures) for r in reports)
    if failed:
        log_fn(f"{failed} article(s) failed.")
        return 1
    return 0


def main() -> None:
    sys.exit(cli_main())
