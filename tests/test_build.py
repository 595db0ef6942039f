"""End-to-end tests for building a whole site."""

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from sitegen import main as main_module
from sitegen.build import build_site
from sitegen.config import SiteConfig
from sitegen.errors import (
    ConfigError,
    DuplicateDate,
    MissingTemplateResource,
    UnresolvedGuideReference,
)

from sitefixture import write_guides, write_post, write_templates


class TestBuildSite(unittest.TestCase):
    def setUp(self):
        self.tmpdir = TemporaryDirectory()
        self.root = Path(self.tmpdir.name)
        self.source = self.root / "src"
        self.out = self.root / "site"
        write_templates(self.source)
        (self.source / "post.html").write_text("<li>$title$</li>\n", encoding="utf-8")
        write_post(self.source, "a", title="A", date=100)
        write_post(self.source, "b", title="B", date=300)
        write_post(self.source, "c", title="C", date=200)
        write_guides(
            self.source,
            [{"name": "Intro", "description": "d", "posts": [100, 300], "todo": ["Advanced Topic"]}],
        )
        self.config = SiteConfig(
            source_dir=self.source,
            output_dir=self.out,
            recent_posts=2,
            workers=4,
            timezone="UTC",
        )

    def tearDown(self):
        self.tmpdir.cleanup()

    def read(self, *parts):
        return self.out.joinpath(*parts).read_text(encoding="utf-8")

    def test_builds_every_page(self):
        summary = build_site(self.config)
        self.assertEqual(summary["posts"], 3)
        self.assertEqual(summary["guides"], 1)

        for name in ("a", "b", "c"):
            page = self.read("posts", name, "index.html")
            self.assertIn(f"<h1>{name.upper()}</h1>", page)
            self.assertIn("<nav>\n  <a href=\"/\">Home</a>\n</nav>", page)
            self.assertIn("<em>text</em>", page)

        archive = self.read("posts", "index.html")
        self.assertIn("<ol>\n<li>B</li>\n<li>C</li>\n<li>A</li>\n\n</ol>", archive)
        self.assertIn("body {\n\n  color: black;\n}", archive)
        self.assertIn("<footer>bye</footer>", archive)

        home = self.read("index.html")
        self.assertIn("<ul>\n<li>B</li>\n<li>C</li>\n\n</ul>", home)
        self.assertNotIn("<li>A</li>", home)

        guides = self.read("guides", "index.html")
        self.assertIn(
            '<li class="post">A|/posts/a</li>\n<li class="post">B|/posts/b</li>\n',
            guides,
        )
        self.assertIn('<li class="todo">Advanced Topic</li>', guides)
        self.assertLess(guides.index("A|/posts/a"), guides.index("Advanced Topic"))

    def test_no_staging_left_behind(self):
        build_site(self.config)
        leftovers = [p.name for p in self.root.iterdir() if p.name.startswith(".site")]
        self.assertEqual(leftovers, [])

    def test_rebuild_replaces_previous_output(self):
        self.out.mkdir()
        (self.out / "stale.html").write_text("old", encoding="utf-8")
        build_site(self.config)
        self.assertFalse((self.out / "stale.html").exists())
        self.assertTrue((self.out / "index.html").exists())

    def test_duplicate_date_writes_nothing(self):
        write_post(self.source, "dup", date=300)
        with self.assertRaises(DuplicateDate):
            build_site(self.config)
        self.assertFalse(self.out.exists())

    def test_unresolved_guide_writes_nothing(self):
        write_guides(self.source, [{"name": "Bad", "description": "", "posts": [999], "todo": []}])
        with self.assertRaises(UnresolvedGuideReference):
            build_site(self.config)
        self.assertFalse(self.out.exists())

    def test_failure_keeps_previous_output(self):
        build_site(self.config)
        before = self.read("index.html")
        (self.source / "footer.html").unlink()
        with self.assertRaises(MissingTemplateResource):
            build_site(self.config)
        self.assertEqual(self.read("index.html"), before)
        leftovers = [p.name for p in self.root.iterdir() if ".staging-" in p.name]
        self.assertEqual(leftovers, [])

    def test_output_dir_must_not_contain_sources(self):
        notes = self.root / "notes.txt"
        notes.write_text("keep", encoding="utf-8")
        for out in (self.root, self.source, self.source / "posts"):
            with self.subTest(out=out):
                config = SiteConfig(source_dir=self.source, output_dir=out, workers=1, timezone="UTC")
                with self.assertRaises(ConfigError):
                    build_site(config)
        self.assertEqual(notes.read_text(encoding="utf-8"), "keep")
        self.assertTrue((self.source / "posts" / "a" / "meta.json").exists())

    def test_output_dir_must_not_contain_manifest(self):
        config = SiteConfig(source_dir=self.source, output_dir=self.out, workers=1, timezone="UTC")
        with self.assertRaises(ConfigError):
            build_site(config, manifest=self.out / "site.yml")

    def test_failed_publish_restores_previous_output(self):
        build_site(self.config)
        before = self.read("index.html")
        rename = Path.rename

        for broken in (".staging-", ".site.previous"):
            with self.subTest(broken=broken):

                def failing_rename(path, target):
                    if ".staging-" in path.name or path.name.startswith(broken):
                        raise OSError("rename failed")
                    return rename(path, target)

                with mock.patch.object(Path, "rename", failing_rename):
                    with self.assertRaises(OSError):
                        build_site(self.config)
                self.assertEqual(self.read("index.html"), before)
                leftovers = [p.name for p in self.root.iterdir() if p.name.startswith(".site")]
                self.assertEqual(leftovers, [])

    def test_page_without_guides_placeholder_skips_guides(self):
        (self.source / "guides.html").write_text("<p>soon</p>\n", encoding="utf-8")
        build_site(self.config)
        self.assertEqual(self.read("guides", "index.html"), "<p>soon</p>\n")

    def test_empty_site(self):
        for name in ("a", "b", "c"):
            for f in (self.source / "posts" / name).iterdir():
                f.unlink()
            (self.source / "posts" / name).rmdir()
        write_guides(self.source, [])
        summary = build_site(self.config)
        self.assertEqual(summary["posts"], 0)
        self.assertIn("<ul>\n\n</ul>", self.read("index.html"))


class TestMain(unittest.TestCase):
    def test_error_exit_status(self):
        with TemporaryDirectory() as tmp:
            manifest = Path(tmp) / "site.yml"
            manifest.write_text("recent_posts: lots\n", encoding="utf-8")
            with mock.patch.object(main_module, "MANIFEST", manifest):
                self.assertEqual(main_module.main(), 1)

    def test_success_exit_status(self):
        with TemporaryDirectory() as tmp:
            root = Path(tmp)
            write_templates(root / "src")
            write_post(root / "src", "only", date=1)
            manifest = root / "site.yml"
            manifest.write_text(
                "source_dir: src\noutput_dir: site\ntimezone: UTC\nworkers: 1\n",
                encoding="utf-8",
            )
            with mock.patch.object(main_module, "MANIFEST", manifest):
                self.assertEqual(main_module.main(), 0)
            self.assertTrue((root / "site" / "posts" / "only" / "index.html").exists())


if __name__ == "__main__":
    unittest.main()
