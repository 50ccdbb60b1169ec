import posixpath
from pathlib import Path

import pandas as pd
import pydantic

from .errors import ManifestError
from .models import Post, parse_bool
from .parser import safe_slug

REQUIRED_COLUMNS = ["File Name", "Published (Y/N)"]
OPTIONAL_COLUMNS = ["Featured (Y/N)", "Desired URL Name"]


class ManifestEntry(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True)

    file_name: str
    published: bool
    featured: bool | None = None
    slug: str | None = None


def _cell(row, column: str):
    if column not in row:
        return None
    value = row[column]
    if pd.isna(value):
        return None
    value = str(value).strip()
    return value or None


def read_manifest(path: Path) -> list[ManifestEntry]:
    """Publishing sheet (.xlsx/.xls/.csv): one row per post, Y/N flags."""
    if not path.exists():
        raise FileNotFoundError(f"Manifest file not found: {path}")

    if path.suffix.lower() in (".xlsx", ".xls"):
        df = pd.read_excel(path)
    else:
        df = pd.read_csv(path)

    df.columns = [str(c).strip() for c in df.columns]
    for c in REQUIRED_COLUMNS:
        if c not in df.columns:
            raise ManifestError(f"Missing required column in manifest {path.name}: {c}")

    entries = []
    for _, row in df.iterrows():
        file_name = _cell(row, "File Name")
        if not file_name:
            continue
        featured = _cell(row, "Featured (Y/N)")
        desired_url = _cell(row, "Desired URL Name")
        entries.append(ManifestEntry(
            file_name=file_name,
            published=parse_bool(_cell(row, "Published (Y/N)")),
            featured=None if featured is None else parse_bool(featured),
            slug=safe_slug(desired_url) if desired_url else None,
        ))
    return entries


def match_entry(post: Post, entries: list[ManifestEntry]) -> ManifestEntry | None:
    """Exact source path first, then the file stem, case-insensitively."""
    for e in entries:
        if e.file_name == post.source:
            return e

    stem = posixpath.splitext(posixpath.basename(post.source))[0].lower()
    for e in entries:
        name = posixpath.basename(e.file_name.replace("\\", "/"))
        if posixpath.splitext(name)[0].lower() == stem:
            return e
    return None


def apply_manifest(post: Post, entry: ManifestEntry) -> Post:
    update = {}
    if entry.featured is not None:
        update["featured"] = entry.featured
    if entry.slug:
        update["slug"] = entry.slug
    return post.model_copy(update=update) if update else post
