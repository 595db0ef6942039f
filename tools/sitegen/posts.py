from __future__ import annotations

import json
import pathlib
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .config import (
    BODY_FILES,
    DATE_TIME_FORMAT,
    EPOCH_RE,
    META_FILE,
    PATH_NAME_RE,
    POSTS_DIR_NAME,
)
from .errors import (
    IncompleteMetadata,
    InvalidIdentifier,
    MissingBody,
    MissingMetadata,
)
from .utils import format_timestamp, parallel_map, read_json


@dataclass(frozen=True)
class Post:
    path_name: str
    title: str
    description: str
    date: int
    formatted_date: str
    body_path: pathlib.Path
    source_dir: pathlib.Path

    @property
    def link(self) -> str:
        return f"/{POSTS_DIR_NAME}/{self.path_name}"

    @property
    def is_notebook(self) -> bool:
        return self.body_path.suffix.lower() == ".ipynb"

    def readable_date(self, timezone: Optional[str] = None) -> str:
        return format_timestamp(self.date, timezone, DATE_TIME_FORMAT)


def coerce_epoch(v: Any) -> Optional[int]:
    # jq-style input: numbers and numeric strings both count as epochs
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        return int(v) if v.is_integer() else None
    if isinstance(v, str) and EPOCH_RE.fullmatch(v.strip()):
        return int(v.strip())
    return None


def _decode_meta(post_dir: pathlib.Path, meta: Any) -> Dict[str, Any]:
    """Strictly decode meta.json into title/description/date."""
    if not isinstance(meta, dict):
        raise IncompleteMetadata(
            post_dir, [f"{META_FILE} must contain a JSON object"]
        )

    problems: List[str] = []
    fields: Dict[str, Any] = {}
    for key in ("title", "description"):
        value = meta.get(key)
        if not isinstance(value, str) or not value.strip():
            problems.append(f"'{key}' must be a non-empty string")
        else:
            fields[key] = value

    if meta.get("date") in (None, ""):
        problems.append("'date' is required")
    else:
        date = coerce_epoch(meta["date"])
        if date is None:
            problems.append(
                f"'date' must be epoch seconds, got {meta['date']!r}"
            )
        else:
            fields["date"] = date

    if problems:
        raise IncompleteMetadata(post_dir, problems)
    return fields


def find_body(post_dir: pathlib.Path) -> Optional[pathlib.Path]:
    for name in BODY_FILES:
        candidate = post_dir / name
        if candidate.is_file():
            return candidate
    return None


def load_post(post_dir: pathlib.Path, timezone: Optional[str] = None) -> Post:
    path_name = post_dir.name
    if not PATH_NAME_RE.fullmatch(path_name):
        raise InvalidIdentifier(post_dir)

    meta_file = post_dir / META_FILE
    if not meta_file.is_file():
        raise MissingMetadata(post_dir, META_FILE)
    try:
        meta = read_json(meta_file)
    except json.JSONDecodeError as e:
        raise IncompleteMetadata(
            post_dir, [f"{META_FILE} is not valid JSON ({e})"]
        ) from e
    fields = _decode_meta(post_dir, meta)
    try:
        formatted_date = format_timestamp(fields["date"], timezone)
    except (OverflowError, OSError, ValueError) as e:
        raise IncompleteMetadata(post_dir, ["'date' is out of range"]) from e

    body_path = find_body(post_dir)
    if body_path is None:
        raise MissingBody(post_dir, BODY_FILES)

    return Post(
        path_name=path_name,
        title=fields["title"],
        description=fields["description"],
        date=fields["date"],
        formatted_date=formatted_date,
        body_path=body_path,
        source_dir=post_dir,
    )


def discover_post_dirs(posts_dir: pathlib.Path) -> List[pathlib.Path]:
    if not posts_dir.is_dir():
        print(f"- no {POSTS_DIR_NAME}/ in {posts_dir.parent}")
        return []
    return sorted(
        p for p in posts_dir.iterdir()
        if p.is_dir() and not p.name.startswith(".")
    )


def load_posts(
    posts_dir: pathlib.Path,
    timezone: Optional[str] = None,
    workers: int = 1,
) -> List[Post]:
    """Load every post under ``posts_dir``; returns once all have loaded."""
    post_dirs = discover_post_dirs(posts_dir)
    posts = parallel_map(
        lambda d: load_post(d, timezone), post_dirs, workers
    )
    print(f"✓ loaded {len(posts)} posts from {posts_dir}")
    return posts
