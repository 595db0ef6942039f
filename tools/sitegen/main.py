#!/usr/bin/env python3
"""
Static site builder for a directory of posts.

- Posts    src/posts/<pathName>/{meta.json, index.md | index.ipynb}
           -> site/posts/<pathName>/index.html
- Archive  every post, newest first      -> site/posts/index.html
- Home     the most recent posts         -> site/index.html
- Guides   src/posts/guides.json         -> site/guides/index.html

Pages are composed from the templates in src/ (`$name$` placeholders);
navbar, footer and style are shared by every page. Settings come from an
optional site.yml at the repo root (see config.SiteConfig).
"""

from __future__ import annotations

import sys

from .build import build_site
from .config import MANIFEST, load_config
from .errors import SiteBuildError


def main() -> int:
    try:
        config = load_config(MANIFEST)
        summary = build_site(config, MANIFEST)
    except SiteBuildError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(
        f"✓ site built: {summary['posts']} posts, {summary['guides']} guides"
        f" -> {summary['output']}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
