"""
Site assembly: posts -> index -> views -> pages.

Output layout:

- <out>/posts/<pathName>/index.html   one page per post
- <out>/posts/index.html              archive, every post newest first
- <out>/guides/index.html             guides with their posts and to-dos
- <out>/index.html                    home page with the most recent posts

Everything is rendered into a staging directory next to <out> and swapped
into place only once the whole site has been built, so a failed build
leaves the previous output untouched.
"""

from __future__ import annotations

import pathlib
import shutil
import tempfile
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from .config import (
    ARCHIVE_TEMPLATE,
    FOOTER,
    GUIDES_DIR_NAME,
    GUIDES_TEMPLATE,
    HOME_TEMPLATE,
    MANIFEST,
    NAVBAR,
    PAGE_FILE,
    POSTS_DIR_NAME,
    STYLE,
    SiteConfig,
    check_output_dir,
)
from .guides import load_guides
from .index import PostIndex, build_post_index
from .posts import Post, load_posts
from .render import render_post
from .templates import Block, TemplateStore
from .utils import ensure_dir, parallel_map, write_text
from .views import ViewProjector


def _shared_blocks(templates: TemplateStore) -> Dict[str, Block]:
    return {
        "navbar": templates.block(NAVBAR),
        "footer": templates.block(FOOTER),
        "style": templates.block(STYLE),
    }


def compose_page(
    templates: TemplateStore, template_name: str, **fragments: str
) -> str:
    """Page template + shared partials + the given fragments as blocks."""
    values: Dict[str, Any] = _shared_blocks(templates)
    for name, text in fragments.items():
        values[name] = Block.of(text)
    return templates.template(template_name).render(values)


@contextmanager
def staged_output(out_dir: pathlib.Path) -> Iterator[pathlib.Path]:
    """Yield a staging directory that replaces ``out_dir`` on success."""
    out_dir = out_dir.resolve()
    ensure_dir(out_dir.parent)
    staging = pathlib.Path(
        tempfile.mkdtemp(prefix=f".{out_dir.name}.staging-", dir=out_dir.parent)
    )
    staging.chmod(0o755)
    try:
        yield staging
        publish(staging, out_dir)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise


def publish(staging: pathlib.Path, out_dir: pathlib.Path) -> None:
    backup = None
    if out_dir.exists():
        backup = out_dir.with_name(f".{out_dir.name}.previous")
        if backup.exists():
            shutil.rmtree(backup)
        out_dir.rename(backup)
    try:
        staging.rename(out_dir)
    except BaseException:
        if backup is not None:
            _restore(backup, out_dir)
        raise
    if backup is not None:
        shutil.rmtree(backup, ignore_errors=True)
    print(f"✓ published {out_dir}")


def _restore(backup: pathlib.Path, out_dir: pathlib.Path) -> None:
    try:
        backup.rename(out_dir)
    except OSError:
        shutil.copytree(backup, out_dir)
        shutil.rmtree(backup, ignore_errors=True)
    print(f"- restored previous {out_dir}")


def write_post_page(
    post: Post,
    out_dir: pathlib.Path,
    templates: TemplateStore,
    config: SiteConfig,
) -> pathlib.Path:
    rendered = render_post(post, templates, config.converter, config.lang)
    page_dir = out_dir / POSTS_DIR_NAME / post.path_name
    write_text(page_dir / PAGE_FILE, rendered.html)
    for name, data in rendered.files.items():
        (page_dir / name).write_bytes(data)
    print(f"✓ built post {post.path_name}")
    return page_dir / PAGE_FILE


def build_site(
    config: SiteConfig, manifest: Optional[pathlib.Path] = MANIFEST
) -> Dict[str, Any]:
    check_output_dir(config.source_dir, config.output_dir, manifest)
    templates = TemplateStore(config.source_dir)

    # Barrier: every post is loaded and validated before ordering starts.
    posts = load_posts(config.posts_dir, config.timezone, config.workers)
    index: PostIndex = build_post_index(posts, config.timezone)

    guides = load_guides(config.guides_file)
    views = ViewProjector(index, templates, guides)
    guides_html = views.guides_fragment()
    all_posts_html = views.full_post_list()
    recent_html = views.recent_post_list(config.recent_posts)

    with staged_output(config.output_dir) as stage:
        parallel_map(
            lambda p: write_post_page(p, stage, templates, config),
            index.ordered,
            config.workers,
        )

        write_text(
            stage / POSTS_DIR_NAME / PAGE_FILE,
            compose_page(templates, ARCHIVE_TEMPLATE, posts=all_posts_html),
        )
        write_text(
            stage / GUIDES_DIR_NAME / PAGE_FILE,
            compose_page(templates, GUIDES_TEMPLATE, guides=guides_html),
        )
        write_text(
            stage / PAGE_FILE,
            compose_page(templates, HOME_TEMPLATE, posts=recent_html),
        )
        print("✓ built archive, guides and home pages")

    return {
        "posts": len(index),
        "guides": len(guides),
        "output": config.output_dir,
    }
