from pathlib import Path
from typing import Any

import pydantic
import yaml

# ==============================
# CONFIG
# ==============================

DEFAULTS: dict[str, Any] = {
    # Posts and images live here; images are linked in place, never copied
    "content_dir": "content",
    "output_dir": "site",
    # Prefix for asset URLs on post and tag pages. Empty means "relative
    # path from the generated page back to content_dir".
    "base_path": "",
    "manifest": None,
    "include_drafts": False,
    "fail_fast": False,
    "fail_on_unresolved": False,

    "site_title": "Blog",
    "author_name": "",
    "accent_color": "#bb271a",
    "header_gray": "#f5f5f5",
    "footer_text": "",
    "disclaimer": "",
}

PATH_KEYS = ("content_dir", "output_dir", "manifest")


class SiteConfig(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True, extra="forbid")

    content_dir: Path
    output_dir: Path
    base_path: str = ""
    manifest: Path | None = None
    include_drafts: bool = False
    fail_fast: bool = False
    fail_on_unresolved: bool = False

    site_title: str
    author_name: str = ""
    accent_color: str
    header_gray: str
    footer_text: str = ""
    disclaimer: str = ""


def read_config_file(config_path: Path) -> dict[str, Any]:
    """Load a YAML config file, resolving relative paths against its folder."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must hold a mapping: {config_path}")

    base = config_path.resolve().parent
    for key in PATH_KEYS:
        if data.get(key):
            p = Path(str(data[key])).expanduser()
            data[key] = p if p.is_absolute() else base / p
    return data


def load_config(config_path: Path | None = None, overrides: dict[str, Any] | None = None) -> SiteConfig:
    """defaults <- config file <- overrides (None values in overrides are ignored)."""
    merged = dict(DEFAULTS)
    if config_path is not None:
        merged.update(read_config_file(config_path))
    for k, v in (overrides or {}).items():
        if v is not None:
            merged[k] = v

    try:
        return SiteConfig.model_validate(merged)
    except pydantic.ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
