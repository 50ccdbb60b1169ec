import datetime
import posixpath
from types import MappingProxyType
from typing import Annotated, Any, Literal, Mapping

import pydantic
from dateutil import parser as dateparse

DEFAULT_CODE_LANGUAGE = "text"


def freeze_mapping(value) -> MappingProxyType:
    return MappingProxyType(dict(value))


# a dict field that reads like a dict but cannot be changed after validation
FrozenMap = Annotated[
    Mapping[str, Any],
    pydantic.AfterValidator(freeze_mapping),
    pydantic.PlainSerializer(dict),
]


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}


# Missing parts are filled from these instead of today's date; the two
# defaults differ in every field so a missing year can be told apart.
DATE_DEFAULT = datetime.datetime(1900, 1, 1)
DATE_CHECK_DEFAULT = datetime.datetime(1904, 2, 2)


def parse_date_string(value: str) -> datetime.datetime:
    """'March 2025' -> 2025-03-01; strings without a year are rejected."""
    try:
        dt = dateparse.parse(value, default=DATE_DEFAULT)
        other = dateparse.parse(value, default=DATE_CHECK_DEFAULT)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"unparseable date '{value}'") from e
    if dt.year != other.year:
        raise ValueError(f"date '{value}' has no year")
    return dt


def normalize_date(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        dt = value
    elif isinstance(value, datetime.date):
        dt = datetime.datetime.combine(value, datetime.time())
    elif isinstance(value, str) and value.strip():
        dt = parse_date_string(value.strip())
    else:
        raise ValueError(f"unparseable date {value!r}")

    # Aware timestamps are kept as naive UTC so every post sorts on one axis
    if dt.tzinfo is not None:
        dt = dt.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return dt


def normalize_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        raw = value.strip()
        if raw.startswith("[") and raw.endswith("]"):
            raw = raw[1:-1]
        items = [t.strip().strip("'\"") for t in raw.split(",")]
    elif isinstance(value, (list, tuple, set)):
        items = []
        for t in value:
            if isinstance(t, (dict, list, tuple, set)):
                raise ValueError(f"tag must be a scalar, got {t!r}")
            items.append(str(t).strip())
    else:
        raise ValueError(f"tags must be a list or a comma separated string, got {value!r}")

    seen = []
    for t in items:
        if t and t not in seen:
            seen.append(t)
    return tuple(seen)


# ==============================
# Body blocks
# ==============================

class AssetRef(pydantic.BaseModel):
    """An image or link target found in prose."""

    model_config = pydantic.ConfigDict(frozen=True)

    kind: Literal["image", "link"]
    target: str
    label: str = ""


class Block(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    kind: Literal["heading", "paragraph", "code", "image"]
    text: str
    level: int | None = None
    language: str | None = None
    refs: tuple[AssetRef, ...] = ()


# ==============================
# Front matter / Post
# ==============================

KNOWN_KEYS = ("title", "date", "tags", "description", "slug", "featured", "draft")


class FrontMatter(pydantic.BaseModel):
    """Validated metadata block of a post."""

    model_config = pydantic.ConfigDict(frozen=True)

    title: str
    date: datetime.datetime
    tags: tuple[str, ...] = ()
    description: str | None = None
    slug: str | None = None
    featured: bool = False
    draft: bool = False

    @pydantic.field_validator("title", mode="before")
    @classmethod
    def _title(cls, v):
        if v is None or isinstance(v, (dict, list)):
            raise ValueError("title must be a non-empty string")
        v = str(v).strip()
        if not v:
            raise ValueError("title must be a non-empty string")
        return v

    @pydantic.field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        return normalize_date(v)

    @pydantic.field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        return normalize_tags(v)

    @pydantic.field_validator("description", "slug", mode="before")
    @classmethod
    def _optional_str(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @pydantic.field_validator("featured", "draft", mode="before")
    @classmethod
    def _flag(cls, v):
        return parse_bool(v)


class Post(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    source: str
    title: str
    date: datetime.datetime
    slug: str
    tags: tuple[str, ...] = ()
    description: str | None = None
    featured: bool = False
    draft: bool = False
    extra: FrozenMap = pydantic.Field(default_factory=dict, validate_default=True)
    body: tuple[Block, ...] = ()

    @property
    def folder(self) -> str:
        return posixpath.dirname(self.source)

    @property
    def refs(self) -> tuple[AssetRef, ...]:
        return tuple(r for b in self.body for r in b.refs)

    @property
    def code_languages(self) -> tuple[str, ...]:
        return tuple(b.language for b in self.body if b.kind == "code")
