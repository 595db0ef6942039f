from __future__ import annotations

import hashlib
import json
import pathlib
import re
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, TypeVar
from zoneinfo import ZoneInfo

from .config import DATE_FORMAT, SLUG_RE

T = TypeVar("T")
R = TypeVar("R")


def slugify(s: str) -> str:
    return re.sub(r"-{2,}", "-", SLUG_RE.sub("-", s.lower()).strip("-"))


def read_json(path: pathlib.Path) -> Any:
    return json.loads(_norm_text(path.read_text(encoding="utf-8")))


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:8]


def _norm_text(s: str) -> str:
    return s.replace('\r\n', '\n').replace('\r', '\n').lstrip('\ufeff')


def ensure_dir(p: pathlib.Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def write_text(path: pathlib.Path, text: str) -> None:
    ensure_dir(path.parent)
    path.write_text(text, encoding="utf-8")


def format_timestamp(
    ts: int, timezone: Optional[str] = None, fmt: str = DATE_FORMAT
) -> str:
    """Format epoch seconds; without a timezone the local offset applies."""
    tz = ZoneInfo(timezone) if timezone else None
    return datetime.fromtimestamp(ts, tz=tz).strftime(fmt)


def parallel_map(
    fn: Callable[[T], R], items: Iterable[T], workers: int = 1
) -> List[R]:
    """Run ``fn`` over ``items`` on a bounded thread pool.

    Results come back in input order. The first exception cancels every
    task that has not started yet and is re-raised once running tasks end.
    """
    items = list(items)
    if workers <= 1 or len(items) <= 1:
        return [fn(item) for item in items]

    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as pool:
        futures = [pool.submit(fn, item) for item in items]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in pending:
            future.cancel()
        # Raise the earliest failing item, not whichever finished first.
        for future in futures:
            if future in done and future.exception() is not None:
                raise future.exception()
        return [future.result() for future in futures]
