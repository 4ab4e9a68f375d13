import re

# Line that opens and closes the metadata block
FRONT_MATTER_DELIMITER = "---"

REQUIRED_FIELDS = ("title", "date")

LAST_MODIFIED_KEYS = ("lastModified", "lastmod", "last_modified")

CATEGORY_KEYS = ("categories", "tags")

# Source files picked up when building a directory
DOCUMENT_SUFFIXES = (".md", ".markdown", ".html", ".htm")

# Page bundles keep their text in index.md; the slug comes from the folder
BUNDLE_INDEX_STEMS = ("index", "_index")

DEFAULT_REQUEST_DELAY = 0.35  # seconds between requests

USER_AGENT = "ArticlePress/1.0 (+https://github.com/)"

# {{< name key="value" >}}, {{< name />}}, {{< /name >}}
DIRECTIVE_RE = re.compile(
    r"\{\{<\s*(?P<closing>/)?\s*(?P<name>[A-Za-z][\w-]*)"
    r"(?P<attrs>(?:\s+(?:[^\s\"'>/]|\"[^\"]*\"|'[^']*'|/(?!\s*>\}\}))+)*)"
    r"\s*(?P<selfclose>/)?\s*>\}\}"
)

DIRECTIVE_ATTR_RE = re.compile(
    r"""(?P<key>[A-Za-z_][\w-]*)(?:\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"']+)))?"""
)

HEADING_RE = re.compile(r"<h(?P<level>[1-6])(?P<attrs>\b[^>]*)>(?P<inner>.*?)</h(?P=level)\s*>", re.I | re.S)

TOC_DIRECTIVES = ("toc", "tableofcontents", "table-of-contents")
IMAGE_DIRECTIVES = ("image", "img")
FIGURE_DIRECTIVES = ("figure",)

IMAGE_ATTRIBUTES = ("src", "alt", "width", "height", "title", "class")

# Content types fetch_document accepts as article documents
TEXT_CONTENT_TYPES = ("text/", "application/xhtml+xml", "application/markdown", "application/x-markdown")
