import pandas as pd
import pytest

from blogsite.create_blog import build_site
from blogsite.errors import ManifestError
from blogsite.manifest import apply_manifest, match_entry, read_manifest
from blogsite.parser import parse_document
from conftest import make_doc, make_post

CSV = """File Name,Published (Y/N),Featured (Y/N),Desired URL Name
fargate/deploy.md,Y,Y,Fargate Intro
Cognito-Hosted-UI,Y,,
cloudwatch/logs.md,N,N,
"""


def test_read_csv_manifest(tmp_path):
    path = tmp_path / "blog_index.csv"
    path.write_text(CSV, encoding="utf-8")

    entries = read_manifest(path)

    assert [(e.file_name, e.published, e.featured, e.slug) for e in entries] == [
        ("fargate/deploy.md", True, True, "fargate-intro"),
        ("Cognito-Hosted-UI", True, None, None),
        ("cloudwatch/logs.md", False, False, None),
    ]


def test_read_excel_manifest(tmp_path):
    path = tmp_path / "blog_index.xlsx"
    pd.DataFrame({
        "File Name": ["fargate/deploy.md"],
        "Published (Y/N)": ["Y"],
    }).to_excel(path, index=False)

    entries = read_manifest(path)

    assert len(entries) == 1
    assert entries[0].published is True
    assert entries[0].featured is None


def test_missing_column_raises(tmp_path):
    path = tmp_path / "m.csv"
    path.write_text("File Name,Featured (Y/N)\na.md,Y\n", encoding="utf-8")
    with pytest.raises(ManifestError):
        read_manifest(path)


def test_match_by_source_then_stem(tmp_path):
    path = tmp_path / "m.csv"
    path.write_text(CSV, encoding="utf-8")
    entries = read_manifest(path)

    assert match_entry(make_post("fargate/deploy.md", "2023-08-27"), entries).slug == "fargate-intro"
    assert match_entry(make_post("cognito/cognito-hosted-ui.md", "2024-03-10"), entries).published
    assert match_entry(make_post("other.md", "2024-03-10"), entries) is None


def test_apply_manifest_returns_new_post(tmp_path):
    path = tmp_path / "m.csv"
    path.write_text(CSV, encoding="utf-8")
    entry = read_manifest(path)[0]
    post = parse_document(make_doc(), "fargate/deploy.md")

    updated = apply_manifest(post, entry)

    assert updated.featured is True
    assert updated.slug == "fargate-intro"
    assert post.featured is False
    assert post.slug == "deploy"


def test_build_only_publishes_listed_posts(tmp_path, write_post, site_config):
    write_post("fargate/deploy.md", make_doc())
    write_post("cloudwatch/logs.md", make_doc(title="Logs"))
    write_post("unlisted.md", make_doc(title="Unlisted"))
    path = tmp_path / "m.csv"
    path.write_text(CSV, encoding="utf-8")

    report = build_site(site_config(manifest=path))

    assert [p.source for p in report.index.posts] == ["fargate/deploy.md"]
    assert sorted(report.skipped) == ["cloudwatch/logs.md", "unlisted.md"]
    assert report.index.slugs == {"fargate/deploy.md": "fargate-intro"}
    assert (tmp_path / "site" / "posts" / "fargate-intro.html").exists()


def test_apply_manifest_keeps_extras_read_only(tmp_path):
    path = tmp_path / "m.csv"
    path.write_text(CSV, encoding="utf-8")
    entry = read_manifest(path)[0]
    post = parse_document(make_doc(region="eu-west-1"), "fargate/deploy.md")

    updated = apply_manifest(post, entry)

    assert updated.extra == {"region": "eu-west-1"}
    with pytest.raises(TypeError):
        updated.extra["region"] = "us-east-1"
