import re
from typing import Annotated, Iterable, Mapping

import pydantic

from .models import Post, freeze_mapping

SourceMap = Annotated[
    Mapping[str, tuple[str, ...]],
    pydantic.AfterValidator(freeze_mapping),
    pydantic.PlainSerializer(dict),
]
SlugMap = Annotated[
    Mapping[str, str],
    pydantic.AfterValidator(freeze_mapping),
    pydantic.PlainSerializer(dict),
]


def prettify_tag(tag: str) -> str:
    # underscores read as spaces: "Case_Report" -> "Case Report"
    return str(tag).strip().replace("_", " ")


def safe_tag_slug(tag: str) -> str:
    # "Artificial Intelligence" -> "artificial-intelligence"
    tag = prettify_tag(tag).lower()
    tag = re.sub(r"\s+", "-", tag)
    tag = re.sub(r"[^a-z0-9\-]", "", tag)
    return tag or "tag"


def _unique(name: str, taken: set[str]) -> str:
    candidate = name
    n = 2
    while candidate in taken:
        candidate = f"{name}-{n}"
        n += 1
    taken.add(candidate)
    return candidate


class Index(pydantic.BaseModel):
    """Read-only view over a set of posts: newest first, grouped by tag."""

    model_config = pydantic.ConfigDict(frozen=True)

    posts: tuple[Post, ...] = ()
    by_tag: SourceMap = pydantic.Field(default_factory=dict, validate_default=True)
    slugs: SlugMap = pydantic.Field(default_factory=dict, validate_default=True)
    tag_slugs: SlugMap = pydantic.Field(default_factory=dict, validate_default=True)

    def get(self, source: str) -> Post:
        for p in self.posts:
            if p.source == source:
                return p
        raise KeyError(source)

    def posts_for_tag(self, tag: str) -> tuple[Post, ...]:
        wanted = set(self.by_tag.get(tag, ()))
        return tuple(p for p in self.posts if p.source in wanted)

    @property
    def tags(self) -> tuple[str, ...]:
        return tuple(self.by_tag)

    @property
    def featured(self) -> tuple[Post, ...]:
        return tuple(p for p in self.posts if p.featured)


def build_index(posts: Iterable[Post]) -> Index:
    # sorted() is stable, so equal dates keep their input order
    ordered = tuple(sorted(posts, key=lambda p: p.date, reverse=True))

    grouped: dict[str, list[str]] = {}
    for p in ordered:
        for t in p.tags:
            grouped.setdefault(t, []).append(p.source)

    all_tags = sorted(grouped, key=lambda t: (prettify_tag(t).lower(), t))
    by_tag = {t: tuple(grouped[t]) for t in all_tags}

    taken: set[str] = set()
    slugs = {p.source: _unique(p.slug, taken) for p in ordered}

    taken = set()
    tag_slugs = {t: _unique(safe_tag_slug(t), taken) for t in all_tags}

    return Index(posts=ordered, by_tag=by_tag, slugs=slugs, tag_slugs=tag_slugs)
