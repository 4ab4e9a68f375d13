import os
import sys
import tempfile
import unittest
from datetime import datetime, timezone

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from articlepress.errors import InvalidTimestamp, MalformedDocument, MissingRequiredField
from articlepress.loader import dump_document, load_article, load_article_file, slug_from_source
from articlepress.renderer import ArticleRenderer, render_article


DOC = """---
title: "Why SRP beats plain password hashes"
date: 2019-03-12T10:00:00Z
lastmod: 2019-04-01
categories:
  - crypto
  - security
description: A walk through the SRP handshake.
draft: false
---
<p>Intro</p>
{{< toc >}}
<h2>Handshake</h2>
<p>Body</p>
"""


class LoaderTests(unittest.TestCase):
    def test_loads_metadata_and_body(self) -> None:
        record = load_article(DOC, source="content/posts/srp.md")
        self.assertEqual(record.title, "Why SRP beats plain password hashes")
        self.assertEqual(record.date, datetime(2019, 3, 12, 10, 0, tzinfo=timezone.utc))
        self.assertEqual(record.last_modified, datetime(2019, 4, 1, tzinfo=timezone.utc))
        self.assertEqual(record.categories, frozenset({"crypto", "security"}))
        self.assertEqual(record.description, "A walk through the SRP handshake.")
        self.assertEqual(record.slug, "srp")
        self.assertEqual(record.extra, (("draft", False),))
        self.assertTrue(record.body.startswith("<p>Intro</p>"))

    def test_last_modified_defaults_to_date(self) -> None:
        record = load_article("---\ntitle: T\ndate: 2020-01-02\n---\nbody")
        self.assertEqual(record.last_modified, record.date)
        self.assertEqual(record.categories, frozenset())
        self.assertIsNone(record.description)

    def test_missing_date(self) -> None:
        with self.assertRaises(MissingRequiredField) as ctx:
            load_article("---\ntitle: T\n---\nbody")
        self.assertEqual(ctx.exception.field, "date")

    def test_missing_title(self) -> None:
        with self.assertRaises(MissingRequiredField) as ctx:
            load_article("---\ntitle: \"\"\ndate: 2020-01-02\n---\n")
        self.assertEqual(ctx.exception.field, "title")

    def test_unparseable_date(self) -> None:
        with self.assertRaises(InvalidTimestamp):
            load_article("---\ntitle: T\ndate: not-a-date\n---\nbody")

    def test_unparseable_last_modified(self) -> None:
        with self.assertRaises(InvalidTimestamp) as ctx:
            load_article("---\ntitle: T\ndate: 2020-01-02\nlastModified: soon\n---\n")
        self.assertEqual(ctx.exception.field, "lastModified")

    def test_last_modified_before_date(self) -> None:
        with self.assertRaises(InvalidTimestamp):
            load_article("---\ntitle: T\ndate: 2020-01-02\nlastModified: 2019-01-01\n---\n")

    def test_missing_opening_delimiter(self) -> None:
        with self.assertRaises(MalformedDocument):
            load_article("title: T\ndate: 2020-01-02\n---\nbody")

    def test_missing_closing_delimiter(self) -> None:
        with self.assertRaises(MalformedDocument):
            load_article("---\ntitle: T\ndate: 2020-01-02\nbody")

    def test_invalid_metadata_line(self) -> None:
        with self.assertRaises(MalformedDocument):
            load_article("---\ntitle: T\njust words\ndate: 2020-01-02\n---\n")

    def test_error_carries_source(self) -> None:
        with self.assertRaises(MissingRequiredField) as ctx:
            load_article("---\ntitle: T\n---\n", source="posts/a.md")
        self.assertIn("posts/a.md", str(ctx.exception))

    def test_category_order_irrelevant(self) -> None:
        a = load_article("---\ntitle: A\ndate: 2020-01-02\ncategories: [crypto, security]\n---\n")
        b = load_article("---\ntitle: B\ndate: 2020-01-02\ncategories:\n  - security\n  - crypto\n  - crypto\n---\n")
        self.assertEqual(a.categories, b.categories)

    def test_tags_merge_into_categories(self) -> None:
        record = load_article("---\ntitle: T\ndate: 2020-01-02\ncategories: mail\ntags: [sieve]\n---\n")
        self.assertEqual(record.categories, frozenset({"mail", "sieve"}))

    def test_slug_precedence(self) -> None:
        text = "---\ntitle: Hello World\ndate: 2020-01-02\nslug: Custom Slug\n---\n"
        self.assertEqual(load_article(text, source="x/other.md").slug, "custom-slug")
        self.assertEqual(load_article(text, slug="forced").slug, "forced")
        bare = "---\ntitle: Hello World\ndate: 2020-01-02\n---\n"
        self.assertEqual(load_article(bare).slug, "hello-world")

    def test_slug_folds_accents(self) -> None:
        record = load_article("---\ntitle: Café Crème\ndate: 2020-01-02\n---\n")
        self.assertEqual(record.slug, "cafe-creme")

    def test_slug_for_untransliterable_title(self) -> None:
        text = "---\ntitle: 日本語の記事\ndate: 2020-01-02\n---\nbody"
        slug = load_article(text).slug
        self.assertTrue(slug.startswith("article-"))
        self.assertRegex(slug, r"^[a-z0-9-]+$")
        self.assertEqual(load_article(text).slug, slug)
        other = load_article("---\ntitle: 中文文章\ndate: 2020-01-02\n---\nbody").slug
        self.assertNotEqual(other, slug)

    def test_slug_from_bundle_and_url(self) -> None:
        self.assertEqual(slug_from_source("content/posts/sieve-filters/index.md"), "sieve-filters")
        self.assertEqual(slug_from_source("https://example.com/raw/main/Post_One.md?x=1"), "post-one")
        self.assertEqual(slug_from_source(None), "")

    def test_load_article_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "mail-filters.md")
            with open(path, "w", encoding="utf-8") as f:
                f.write("---\ntitle: Mail filters\ndate: 2021-06-01 08:30\n---\n<p>x</p>\n")
            record = load_article_file(path)
        self.assertEqual(record.slug, "mail-filters")
        self.assertEqual(record.source, path)
        self.assertEqual(record.body, "<p>x</p>\n")


class RoundTripTests(unittest.TestCase):
    def test_rendering_preserves_metadata(self) -> None:
        record = load_article(DOC, source="srp.md")
        rendered = render_article(record, ArticleRenderer())
        reloaded = load_article(dump_document(rendered.record, rendered.html))
        self.assertEqual(reloaded.metadata(), record.metadata())
        self.assertEqual(reloaded.body, rendered.html)

    def test_dump_escapes_quotes(self) -> None:
        record = load_article('---\ntitle: \'Say "hi"\'\ndate: 2020-01-02\n---\nbody')
        self.assertEqual(record.title, 'Say "hi"')
        self.assertEqual(load_article(dump_document(record)).title, 'Say "hi"')

    def test_extra_lists_keep_their_types(self) -> None:
        text = '---\ntitle: T\ndate: 2020-01-02\nflags: [true, false]\nmatrix: [[a, b], [c]]\nwords: ["true", x]\n---\nbody'
        record = load_article(text)
        self.assertEqual(
            record.extra,
            (("flags", (True, False)), ("matrix", (("a", "b"), ("c",))), ("words", ("true", "x"))),
        )
        rendered = render_article(record, ArticleRenderer())
        reloaded = load_article(dump_document(rendered.record, rendered.html))
        self.assertEqual(reloaded.extra, record.extra)
        self.assertEqual(reloaded.metadata(), record.metadata())


if __name__ == "__main__":
    unittest.main()
