"""
Placeholder substitution for page templates and per-item sub-templates.

Templates are plain text with ``$name$`` placeholders. A value is either

- a ``str``: an inline value, HTML-escaped and substituted at every
  occurrence of the placeholder, or
- a ``Block``: pre-rendered content (a fragment or a template resource)
  spliced in verbatim where the token was, every line kept as-is.

Substitution is a single pass over the parsed template, so inserted text
is never scanned for placeholders again, and a block whose placeholder is
not in the template is never loaded. Placeholders without a value are left
untouched.
"""

from __future__ import annotations

import html
import pathlib
import threading
from typing import Callable, Dict, List, Mapping, Optional, Set, Union

from .config import PLACEHOLDER_RE
from .errors import MissingTemplateResource
from .utils import _norm_text


class Block:
    """Block content, loaded on first use."""

    def __init__(self, loader: Callable[[], str]):
        self._loader = loader
        self._content: Optional[str] = None
        self._lock = threading.Lock()

    @classmethod
    def of(cls, text: str) -> "Block":
        block = cls(lambda: text)
        block._content = text
        return block

    @property
    def content(self) -> str:
        with self._lock:
            if self._content is None:
                self._content = self._loader()
            return self._content


Value = Union[str, Block]


class _Placeholder:
    __slots__ = ("name", "token")

    def __init__(self, name: str, token: str):
        self.name = name
        self.token = token


class Template:
    def __init__(self, text: str, name: str = "<string>"):
        self.name = name
        self.text = text
        self._segments: List[Union[str, _Placeholder]] = []
        last = 0
        for m in PLACEHOLDER_RE.finditer(text):
            if m.start() > last:
                self._segments.append(text[last:m.start()])
            self._segments.append(_Placeholder(m.group("name"), m.group(0)))
            last = m.end()
        if last < len(text):
            self._segments.append(text[last:])

    def __repr__(self) -> str:
        return f"Template({self.name!r})"

    @property
    def placeholders(self) -> Set[str]:
        return {s.name for s in self._segments if isinstance(s, _Placeholder)}

    def render(self, values: Mapping[str, Value]) -> str:
        out: List[str] = []
        for seg in self._segments:
            if isinstance(seg, str):
                out.append(seg)
                continue
            value = values.get(seg.name)
            if value is None:
                out.append(seg.token)
            elif isinstance(value, Block):
                out.append(value.content)
            else:
                out.append(html.escape(str(value), quote=True))
        return "".join(out)


def compose(template: Union[str, Template], values: Mapping[str, Value]) -> str:
    if not isinstance(template, Template):
        template = Template(template)
    return template.render(values)


def render_each(template: Template, rows: List[Mapping[str, Value]]) -> str:
    """Instantiate ``template`` once per row and concatenate, no separator."""
    return "".join(template.render(row) for row in rows)


class TemplateStore:
    """Reads template resources from the site source directory, once each."""

    def __init__(self, source_dir: pathlib.Path):
        self.source_dir = source_dir
        self._cache: Dict[str, str] = {}
        self._lock = threading.Lock()

    def text(self, name: str) -> str:
        with self._lock:
            if name not in self._cache:
                path = self.source_dir / name
                if not path.is_file():
                    raise MissingTemplateResource(path)
                try:
                    self._cache[name] = _norm_text(
                        path.read_text(encoding="utf-8")
                    )
                except (OSError, UnicodeDecodeError) as e:
                    raise MissingTemplateResource(
                        path, f"cannot be read ({e})"
                    ) from e
            return self._cache[name]

    def template(self, name: str) -> Template:
        return Template(self.text(name), name=name)

    def block(self, name: str) -> Block:
        return Block(lambda: self.text(name))
