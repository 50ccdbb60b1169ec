import json
import posixpath
from pathlib import Path
from urllib.parse import quote

SKIPPED_SUFFIXES = (".md", ".markdown")


def _hidden(rel: Path) -> bool:
    return any(part.startswith(".") for part in rel.parts)


def collect_assets(content_dir: Path) -> dict[str, list[str]]:
    """Files that posts may link to, grouped by their folder under content_dir."""
    asset_data: dict[str, list[str]] = {}

    for path in sorted(content_dir.rglob("*")):
        rel = path.relative_to(content_dir)
        if not path.is_file() or _hidden(rel):
            continue
        if path.suffix.lower() in SKIPPED_SUFFIXES:
            continue
        folder = rel.parent.as_posix()
        asset_data.setdefault("" if folder == "." else folder, []).append(rel.name)

    return asset_data


def asset_paths(asset_data: dict[str, list[str]]) -> frozenset[str]:
    return frozenset(
        posixpath.join(folder, name) if folder else name
        for folder, names in asset_data.items()
        for name in names
    )


def asset_url(rel: str, base_path: str) -> str:
    base = base_path.rstrip("/")
    url = quote(rel)
    return f"{base}/{url}" if base else url


def write_assets_json(asset_data: dict[str, list[str]], output_path: Path):
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(asset_data, f, indent=2)
