import datetime
from pathlib import Path

import pytest

from blogsite.config import load_config
from blogsite.models import Post


def make_doc(title="Deploying to Fargate", date="2025-02-01", tags="[aws, fargate]", body="Hello.\n", **extra):
    lines = ["---"]
    if title is not None:
        lines.append(f"title: {title}")
    if date is not None:
        lines.append(f"date: {date}")
    if tags is not None:
        lines.append(f"tags: {tags}")
    for k, v in extra.items():
        lines.append(f"{k}: {v}")
    lines.append("---")
    return "\n".join(lines) + "\n" + body


def make_post(source, date, tags=(), title="Post", **kw):
    return Post(
        source=source,
        title=title,
        date=datetime.datetime.fromisoformat(date),
        slug=kw.pop("slug", Path(source).stem),
        tags=tuple(tags),
        **kw,
    )


@pytest.fixture
def content_dir(tmp_path):
    d = tmp_path / "content"
    d.mkdir()
    return d


@pytest.fixture
def write_post(content_dir):
    def _write(rel, text):
        path = content_dir / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def site_config(tmp_path, content_dir):
    def _config(**overrides):
        merged = {"content_dir": content_dir, "output_dir": tmp_path / "site"}
        merged.update(overrides)
        return load_config(None, merged)
    return _config
