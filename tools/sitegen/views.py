from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Tuple

from .config import (
    GUIDE_CONTAINER,
    GUIDE_POST_ROW,
    GUIDE_TODO_ROW,
    POST_ROW,
)
from .guides import GuideSpec
from .index import PostIndex
from .posts import Post
from .templates import Block, TemplateStore, Value, render_each


def post_row(post: Post) -> Dict[str, Value]:
    return {
        "link": post.link,
        "title": post.title,
        "date": post.formatted_date,
        "desc": post.description,
    }


class ViewProjector:
    """Builds the list and guide fragments shared by the index pages."""

    def __init__(
        self,
        index: PostIndex,
        templates: TemplateStore,
        guides: Sequence[GuideSpec] = (),
    ):
        self.index = index
        self.templates = templates
        self.guides = tuple(guides)

    def _post_rows(self, posts: Iterable[Post]) -> str:
        return render_each(
            self.templates.template(POST_ROW), [post_row(p) for p in posts]
        )

    def full_post_list(self) -> str:
        return self._post_rows(self.index.ordered)

    def recent_post_list(self, n: int) -> str:
        return self._post_rows(self.index.recent(n))

    def resolve_guides(self) -> List[Tuple[GuideSpec, Tuple[Post, ...]]]:
        return [(g, g.resolve(self.index)) for g in self.guides]

    def guides_fragment(self) -> str:
        resolved = self.resolve_guides()
        if not resolved:
            return ""

        post_tpl = self.templates.template(GUIDE_POST_ROW)
        todo_tpl = self.templates.template(GUIDE_TODO_ROW)
        container = self.templates.template(GUIDE_CONTAINER)

        out: List[str] = []
        for guide, posts in resolved:
            rows = render_each(
                post_tpl, [{"title": p.title, "link": p.link} for p in posts]
            )
            todos = render_each(todo_tpl, [{"title": t} for t in guide.todo])
            out.append(
                container.render(
                    {
                        "name": guide.name,
                        "desc": guide.description,
                        "posts": Block.of(rows),
                        "todoposts": Block.of(todos),
                    }
                )
            )
        return "".join(out)
