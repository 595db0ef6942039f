from __future__ import annotations

import pathlib
from typing import Union

PathLike = Union[str, pathlib.Path]


class SiteBuildError(Exception):
    """Base class for every fatal build error.

    Content and authoring errors are deterministic, so nothing in the
    build retries on them: the first one aborts the whole build.
    """


class ConfigError(SiteBuildError):
    pass


class InvalidIdentifier(SiteBuildError):
    def __init__(self, post_dir: PathLike):
        self.post_dir = post_dir
        super().__init__(
            f"Invalid post '{post_dir}': the name of the directory is invalid "
            "(allowed: letters, digits, '_' and '-')."
        )


class MissingMetadata(SiteBuildError):
    def __init__(self, post_dir: PathLike, meta_file: str):
        self.post_dir = post_dir
        super().__init__(f"Invalid post '{post_dir}': no {meta_file} file.")


class IncompleteMetadata(SiteBuildError):
    def __init__(self, post_dir: PathLike, problems: list[str]):
        self.post_dir = post_dir
        self.problems = problems
        super().__init__(
            f"Invalid post '{post_dir}': {'; '.join(problems)}."
        )


class MissingBody(SiteBuildError):
    def __init__(self, post_dir: PathLike, candidates: tuple[str, ...]):
        self.post_dir = post_dir
        super().__init__(
            f"Invalid post '{post_dir}': no {' or '.join(candidates)} file."
        )


class DuplicateDate(SiteBuildError):
    def __init__(self, date: int, readable: str, first: str, second: str):
        self.date = date
        self.posts = (first, second)
        super().__init__(
            "Two posts have the same date! This is not allowed. "
            f"Date: {readable} ({date}), posts: '{first}' and '{second}'."
        )


class InvalidGuideCatalogue(SiteBuildError):
    pass


class UnresolvedGuideReference(SiteBuildError):
    def __init__(self, guide: str, date: int):
        self.guide = guide
        self.date = date
        super().__init__(
            f"Guide '{guide}' references a post with date {date}, "
            "but no post has that date."
        )


class MissingTemplateResource(SiteBuildError):
    def __init__(self, path: PathLike, reason: str = "not found"):
        self.path = path
        super().__init__(f"Template resource '{path}' {reason}.")


class RenderFailure(SiteBuildError):
    def __init__(self, post: str, reason: str):
        self.post = post
        super().__init__(f"Could not render post '{post}': {reason}")
