from __future__ import annotations

import pathlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import nbformat
from nbconvert import MarkdownExporter
from nbconvert.filters.markdown import (
    markdown2html_mistune,
    markdown2html_pandoc,
)
from nbformat.validator import validate

from .config import (
    FOOTER,
    HIGHLIGHT_THEME,
    NAVBAR,
    POST_PAGE_TEMPLATE,
    STYLE,
)
from .errors import RenderFailure, SiteBuildError
from .posts import Post
from .templates import Block, Template, TemplateStore
from .utils import _norm_text, content_hash, slugify
from .visibility import strip_hidden_cells


@dataclass
class RenderedPost:
    html: str
    # extra files (notebook outputs) written next to the page
    files: Dict[str, bytes] = field(default_factory=dict)


def markdown_to_html(
    source: str,
    converter: str = "mistune",
    extra_args: Optional[List[str]] = None,
) -> str:
    if converter == "pandoc":
        return markdown2html_pandoc(source, extra_args=extra_args)
    return markdown2html_mistune(source)


def notebook_to_markdown(
    ipynb: pathlib.Path, url_prefix: str
) -> Tuple[str, Dict[str, bytes]]:
    """Export a notebook body to markdown plus its output images."""
    nb = nbformat.read(str(ipynb), as_version=4)
    validate(nb)
    dropped = strip_hidden_cells(nb)
    if dropped:
        print(f"- dropped {dropped} hidden cells from {ipynb}")

    body, res = MarkdownExporter().from_notebook_node(nb)

    # Deterministic names for output blobs, referenced absolutely
    files: Dict[str, bytes] = {}
    for name, data in (res.get("outputs") or {}).items():
        p = pathlib.PurePath(name)
        new_name = f"{slugify(p.stem)}.{content_hash(data)}{p.suffix}"
        files[new_name] = data
        body = body.replace(name, f"{url_prefix}/{new_name}")
    return body, files


def render_post_document(
    markdown_source: str,
    title: str,
    description: str,
    formatted_date: str,
    page_template: Template,
    navbar: Block,
    footer: Block,
    style: Block,
    converter: str = "mistune",
    lang: str = "en",
    extra_args: Optional[List[str]] = None,
) -> str:
    body = markdown_to_html(markdown_source, converter, extra_args)
    return page_template.render(
        {
            "title": title,
            "desc": description,
            "description": description,
            "date": formatted_date,
            "lang": lang,
            "navbar": navbar,
            "footer": footer,
            "style": style,
            "body": Block.of(body),
        }
    )


def pandoc_args(source_dir: pathlib.Path) -> List[str]:
    args = ["--mathjax"]
    theme = source_dir / HIGHLIGHT_THEME
    if theme.is_file():
        args += ["--highlight-style", str(theme)]
    return args


def render_post(
    post: Post,
    templates: TemplateStore,
    converter: str = "mistune",
    lang: str = "en",
) -> RenderedPost:
    files: Dict[str, bytes] = {}
    try:
        if post.is_notebook:
            source, files = notebook_to_markdown(post.body_path, post.link)
        else:
            source = _norm_text(post.body_path.read_text(encoding="utf-8"))
    except (OSError, ValueError, nbformat.ValidationError) as e:
        raise RenderFailure(
            post.path_name, f"cannot read {post.body_path.name}: {e}"
        ) from e

    page_template = templates.template(POST_PAGE_TEMPLATE)
    extra_args = (
        pandoc_args(templates.source_dir) if converter == "pandoc" else None
    )
    try:
        html = render_post_document(
            source,
            post.title,
            post.description,
            post.formatted_date,
            page_template,
            navbar=templates.block(NAVBAR),
            footer=templates.block(FOOTER),
            style=templates.block(STYLE),
            converter=converter,
            lang=lang,
            extra_args=extra_args,
        )
    except SiteBuildError:
        raise
    except Exception as e:  # converter errors: pandoc missing, mistune failures
        raise RenderFailure(
            post.path_name, str(e) or e.__class__.__name__
        ) from e
    return RenderedPost(html=html, files=files)
