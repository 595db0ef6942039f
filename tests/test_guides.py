"""Tests for the guides catalogue."""

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from sitegen.errors import InvalidGuideCatalogue, UnresolvedGuideReference
from sitegen.guides import GuideSpec, load_guides, parse_guides
from sitegen.index import build_post_index

from sitefixture import write_guides
from test_index import make_post


class TestParseGuides(unittest.TestCase):
    def test_parses_in_declared_order(self):
        guides = parse_guides(
            [
                {"name": "B", "description": "b", "posts": [3, "1"], "todo": ["later"]},
                {"name": "A", "description": "a"},
            ]
        )
        self.assertEqual(
            guides,
            (
                GuideSpec("B", "b", posts=(3, 1), todo=("later",)),
                GuideSpec("A", "a"),
            ),
        )

    def test_null_lists_are_empty(self):
        guides = parse_guides([{"name": "A", "description": "a", "posts": None, "todo": None}])
        self.assertEqual(guides, (GuideSpec("A", "a"),))

    def test_rejects_bad_shapes(self):
        for data in (
            {"name": "x"},
            ["not an object"],
            [{"description": "no name"}],
            [{"name": "x", "description": "d", "posts": "100"}],
            [{"name": "x", "description": "d", "posts": ["soon"]}],
            [{"name": "x", "description": "d", "todo": [1]}],
            [{"name": "x", "description": "d", "posts": 0}],
            [{"name": "x", "description": "d", "posts": ""}],
            [{"name": "x", "description": "d", "todo": {}}],
            [{"name": "x", "description": "d", "todo": False}],
        ):
            with self.subTest(data=data):
                with self.assertRaises(InvalidGuideCatalogue):
                    parse_guides(data)


class TestLoadGuides(unittest.TestCase):
    def setUp(self):
        self.tmpdir = TemporaryDirectory()
        self.source = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_catalogue_is_empty(self):
        self.assertEqual(load_guides(self.source / "posts" / "guides.json"), ())

    def test_invalid_json(self):
        path = write_guides(self.source, [])
        path.write_text("[{", encoding="utf-8")
        with self.assertRaises(InvalidGuideCatalogue):
            load_guides(path)

    def test_load(self):
        path = write_guides(self.source, [{"name": "n", "description": "d", "posts": [1]}])
        self.assertEqual(load_guides(path), (GuideSpec("n", "d", posts=(1,)),))


class TestResolve(unittest.TestCase):
    def test_resolves_in_declared_order(self):
        index = build_post_index([make_post("a", 100), make_post("b", 300)])
        guide = GuideSpec("Intro", "", posts=(100, 300))
        self.assertEqual([p.path_name for p in guide.resolve(index)], ["a", "b"])

    def test_unresolved(self):
        index = build_post_index([make_post("a", 100)])
        with self.assertRaises(UnresolvedGuideReference):
            GuideSpec("Intro", "", posts=(100, 300)).resolve(index)


if __name__ == "__main__":
    unittest.main()
