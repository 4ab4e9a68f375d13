import os
import sys
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from articlepress.collection import ArticleCollection, build_collection
from articlepress.errors import DuplicateSlug
from articlepress.loader import load_article


def _doc(title: str, date: str, slug: str = "", categories: str = "[]") -> str:
    slug_line = f"slug: {slug}\n" if slug else ""
    return f"---\ntitle: {title}\ndate: {date}\n{slug_line}categories: {categories}\n---\nbody\n"


class CollectionTests(unittest.TestCase):
    def test_duplicate_slug_detected_by_aggregation(self) -> None:
        first = load_article(_doc("One", "2020-01-01", slug="same"), source="a.md")
        second = load_article(_doc("Two", "2020-02-01", slug="same"), source="b.md")
        collection = ArticleCollection([first])
        with self.assertRaises(DuplicateSlug) as ctx:
            collection.add(second)
        self.assertEqual(ctx.exception.slug, "same")
        self.assertIn("a.md", str(ctx.exception))
        self.assertIn("b.md", str(ctx.exception))
        self.assertEqual(len(collection), 1)

    def test_build_collection_rejects_duplicates(self) -> None:
        records = [load_article(_doc("Same title", "2020-01-01")), load_article(_doc("Same title", "2021-01-01"))]
        with self.assertRaises(DuplicateSlug):
            build_collection(records)

    def test_ordering_and_lookup(self) -> None:
        records = [
            load_article(_doc("Old", "2018-05-01", categories="[crypto]")),
            load_article(_doc("New", "2021-05-01", categories="[mail, security]")),
            load_article(_doc("Mid", "2019-05-01", categories="[crypto, security]")),
        ]
        collection = build_collection(records)
        self.assertEqual([r.slug for r in collection.by_date()], ["new", "mid", "old"])
        self.assertEqual([r.slug for r in collection.by_date(newest_first=False)], ["old", "mid", "new"])
        self.assertIn("mid", collection)
        self.assertEqual(collection.get("old").title, "Old")
        self.assertIsNone(collection.get("missing"))
        self.assertEqual(collection.categories(), ["crypto", "mail", "security"])
        self.assertEqual([r.slug for r in collection.in_category("security")], ["new", "mid"])

    def test_same_date_ties_broken_by_slug(self) -> None:
        records = [load_article(_doc("Beta", "2020-01-01")), load_article(_doc("Alpha", "2020-01-01"))]
        collection = build_collection(records)
        self.assertEqual([r.slug for r in collection.by_date()], ["alpha", "beta"])


if __name__ == "__main__":
    unittest.main()
