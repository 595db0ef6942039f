from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from .errors import DuplicateDate
from .posts import Post


@dataclass(frozen=True)
class PostIndex:
    """Read-only date -> post lookup plus the newest-first post order.

    Built once after every post has loaded and shared as-is afterwards.
    ``positions`` maps each date to its post's position in ``ordered``.
    """

    ordered: Tuple[Post, ...]
    positions: Mapping[int, int]

    def __len__(self) -> int:
        return len(self.ordered)

    def __iter__(self) -> Iterator[Post]:
        return iter(self.ordered)

    def __contains__(self, date: object) -> bool:
        return date in self.positions

    def resolve(self, date: int) -> Post:
        return self.ordered[self.positions[date]]

    def recent(self, n: int) -> Tuple[Post, ...]:
        if n < 0:
            raise ValueError(f"recent post count must be >= 0, got {n}")
        return self.ordered[:n]


def build_post_index(
    posts: Iterable[Post], timezone: Optional[str] = None
) -> PostIndex:
    seen: Dict[int, Post] = {}
    for post in posts:
        other = seen.get(post.date)
        if other is not None:
            raise DuplicateDate(
                post.date,
                post.readable_date(timezone),
                other.path_name,
                post.path_name,
            )
        seen[post.date] = post

    ordered = tuple(seen[d] for d in sorted(seen, reverse=True))
    positions = MappingProxyType({p.date: i for i, p in enumerate(ordered)})
    return PostIndex(ordered=ordered, positions=positions)
