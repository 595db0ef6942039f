from __future__ import annotations

import json
import pathlib
from dataclasses import dataclass
from typing import Any, List, Tuple

from .errors import InvalidGuideCatalogue, UnresolvedGuideReference
from .index import PostIndex
from .posts import Post, coerce_epoch
from .utils import read_json


@dataclass(frozen=True)
class GuideSpec:
    name: str
    description: str
    posts: Tuple[int, ...] = ()
    todo: Tuple[str, ...] = ()

    def resolve(self, index: PostIndex) -> Tuple[Post, ...]:
        """Posts of this guide in declared order."""
        missing = [d for d in self.posts if d not in index]
        if missing:
            raise UnresolvedGuideReference(self.name, missing[0])
        return tuple(index.resolve(d) for d in self.posts)


def _decode_guide(pos: int, obj: Any) -> GuideSpec:
    where = f"guide #{pos + 1}"
    if not isinstance(obj, dict):
        raise InvalidGuideCatalogue(f"{where} must be an object")

    for key in ("name", "description"):
        if not isinstance(obj.get(key), str):
            raise InvalidGuideCatalogue(f"{where}: '{key}' must be a string")
    where = f"guide '{obj['name']}'"

    # absent or null means empty; anything else must already be a list
    posts = obj.get("posts")
    todo = obj.get("todo")
    posts = [] if posts is None else posts
    todo = [] if todo is None else todo
    for key, value in (("posts", posts), ("todo", todo)):
        if not isinstance(value, list):
            raise InvalidGuideCatalogue(f"{where}: '{key}' must be a list")

    dates: List[int] = []
    for ref in posts:
        date = coerce_epoch(ref)
        if date is None:
            raise InvalidGuideCatalogue(
                f"{where}: post reference {ref!r} is not an epoch date"
            )
        dates.append(date)

    if not all(isinstance(t, str) for t in todo):
        raise InvalidGuideCatalogue(f"{where}: 'todo' entries must be strings")

    return GuideSpec(
        name=obj["name"],
        description=obj["description"],
        posts=tuple(dates),
        todo=tuple(todo),
    )


def parse_guides(data: Any) -> Tuple[GuideSpec, ...]:
    if not isinstance(data, list):
        raise InvalidGuideCatalogue("the guides catalogue must be a JSON array")
    return tuple(_decode_guide(i, obj) for i, obj in enumerate(data))


def load_guides(path: pathlib.Path) -> Tuple[GuideSpec, ...]:
    if not path.is_file():
        print(f"- no {path.name}, the guides page will be empty")
        return ()
    try:
        data = read_json(path)
    except json.JSONDecodeError as e:
        raise InvalidGuideCatalogue(f"{path} is not valid JSON ({e})") from e
    guides = parse_guides(data)
    print(f"✓ loaded {len(guides)} guides from {path}")
    return guides
