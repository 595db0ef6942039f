#!/usr/bin/env python3
from __future__ import annotations

import os
import pathlib
import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .errors import ConfigError

# ---------- Paths

# This assumes config.py sits in tools/sitegen/ at the repo root.
ROOT = pathlib.Path(__file__).resolve().parents[2]
SOURCE_DIR = ROOT / "src"
OUTPUT_DIR = ROOT / "site"
MANIFEST = ROOT / "site.yml"

# ---------- Content layout

POSTS_DIR_NAME = "posts"
GUIDES_DIR_NAME = "guides"
META_FILE = "meta.json"
BODY_FILES = ("index.md", "index.ipynb")
GUIDES_FILE = "guides.json"
PAGE_FILE = "index.html"

# Page templates, partials and per-item sub-templates (all under SOURCE_DIR)
POST_PAGE_TEMPLATE = "template.html"
ARCHIVE_TEMPLATE = "posts.html"
GUIDES_TEMPLATE = "guides.html"
HOME_TEMPLATE = "index.html"
NAVBAR = "navbar.html"
FOOTER = "footer.html"
STYLE = "style.css"
POST_ROW = "post.html"
GUIDE_POST_ROW = "guidepost.html"
GUIDE_TODO_ROW = "todoguidepost.html"
GUIDE_CONTAINER = "guide.html"
HIGHLIGHT_THEME = "highlight.theme"

# ---------- Config

RECENT_POSTS = 4
CONVERTERS = ("mistune", "pandoc")
DATE_FORMAT = "%Y-%m-%d"
DATE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Some shared regexes

PATH_NAME_RE = re.compile(r"[A-Za-z0-9_-]+")
PLACEHOLDER_RE = re.compile(r"\$(?P<name>[A-Za-z_][A-Za-z0-9_]*)\$")
EPOCH_RE = re.compile(r"[+-]?\d+")
SLUG_RE = re.compile(r"[^a-z0-9-]+")


def check_output_dir(
    source_dir: pathlib.Path,
    output_dir: pathlib.Path,
    manifest: Optional[pathlib.Path] = None,
) -> None:
    """Refuse an output directory whose replacement would delete sources."""
    src = pathlib.Path(source_dir).resolve()
    out = pathlib.Path(output_dir).resolve()
    if out == src or out in src.parents or src in out.parents:
        raise ConfigError(f"output_dir {out} overlaps source_dir {src}")
    if manifest is not None and out in pathlib.Path(manifest).resolve().parents:
        raise ConfigError(f"output_dir {out} contains the manifest {manifest}")


@dataclass(frozen=True)
class SiteConfig:
    source_dir: pathlib.Path = SOURCE_DIR
    output_dir: pathlib.Path = OUTPUT_DIR
    recent_posts: int = RECENT_POSTS
    workers: int = field(default_factory=lambda: os.cpu_count() or 1)
    timezone: Optional[str] = None
    converter: str = "mistune"
    lang: str = "en"

    @property
    def posts_dir(self) -> pathlib.Path:
        return self.source_dir / POSTS_DIR_NAME

    @property
    def guides_file(self) -> pathlib.Path:
        return self.posts_dir / GUIDES_FILE

    @classmethod
    def from_mapping(
        cls,
        data: Dict[str, Any],
        base_dir: pathlib.Path = ROOT,
        manifest: Optional[pathlib.Path] = None,
    ) -> "SiteConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown site.yml keys: {', '.join(unknown)}")

        kwargs: Dict[str, Any] = {}
        for key in ("source_dir", "output_dir"):
            if data.get(key) is not None:
                if not isinstance(data[key], str):
                    raise ConfigError(f"'{key}' must be a path string")
                kwargs[key] = (base_dir / data[key]).resolve()

        for key, minimum in (("recent_posts", 0), ("workers", 1)):
            if data.get(key) is not None:
                value = data[key]
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ConfigError(f"'{key}' must be an integer")
                if value < minimum:
                    raise ConfigError(f"'{key}' must be >= {minimum}")
                kwargs[key] = value

        for key in ("timezone", "converter", "lang"):
            if data.get(key) is not None:
                if not isinstance(data[key], str):
                    raise ConfigError(f"'{key}' must be a string")
                kwargs[key] = data[key]

        if kwargs.get("timezone"):
            try:
                ZoneInfo(kwargs["timezone"])
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ConfigError(
                    f"unknown timezone {kwargs['timezone']!r}"
                ) from e

        if kwargs.get("converter", "mistune") not in CONVERTERS:
            raise ConfigError(
                f"'converter' must be one of {', '.join(CONVERTERS)}"
            )

        check_output_dir(
            kwargs.get("source_dir", SOURCE_DIR),
            kwargs.get("output_dir", OUTPUT_DIR),
            manifest or base_dir / MANIFEST.name,
        )
        return cls(**kwargs)


def load_config(path: pathlib.Path = MANIFEST) -> SiteConfig:
    """Read ``site.yml``; a missing manifest means all defaults."""
    if not path.exists():
        return SiteConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return SiteConfig.from_mapping(data, base_dir=path.parent, manifest=path)
