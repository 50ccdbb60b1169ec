import argparse
import datetime
import json
import os
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .assets import asset_paths, asset_url, collect_assets, write_assets_json
from .config import SiteConfig, load_config
from .errors import BlogBuildError, MalformedFrontMatter, UnresolvedAsset
from .index import Index, build_index
from .manifest import apply_manifest, match_entry, read_manifest
from .models import Post
from .pages import make_card, make_stylesheet, wrap_index_page, wrap_post_page, wrap_tag_page
from .parser import parse_document
from .render import is_external, render_post


@dataclass
class BuildReport:
    index: Index | None = None
    written: list[Path] = field(default_factory=list)
    failures: list[MalformedFrontMatter] = field(default_factory=list)
    warnings: list[UnresolvedAsset] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


# ==============================
# Helpers
# ==============================

def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def write_text(path: Path, text: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def find_markdown_files(content_dir: Path) -> list[Path]:
    found = []
    for p in sorted(content_dir.rglob("*.md")):
        rel = p.relative_to(content_dir)
        if p.is_file() and not any(part.startswith(".") for part in rel.parts):
            found.append(p)
    return found


def relative_base(cfg: SiteConfig, page_dir: Path) -> str:
    if cfg.base_path:
        return cfg.base_path
    return Path(os.path.relpath(cfg.content_dir.resolve(), page_dir.resolve())).as_posix()


# ==============================
# Loading
# ==============================

def load_posts(cfg: SiteConfig, report: BuildReport) -> list[Post]:
    """Parse every post under content_dir; bad documents land in report.failures."""
    content_dir = cfg.content_dir
    if not content_dir.exists():
        raise FileNotFoundError(f"Content directory not found: {content_dir}")

    entries = read_manifest(cfg.manifest) if cfg.manifest else None

    posts = []
    for md_path in find_markdown_files(content_dir):
        source = md_path.relative_to(content_dir).as_posix()
        try:
            post = parse_document(read_text(md_path), source)
        except MalformedFrontMatter as e:
            if cfg.fail_fast:
                raise
            print(f"[ERROR] {e}", file=sys.stderr)
            report.failures.append(e)
            continue

        if entries is not None:
            entry = match_entry(post, entries)
            if entry is None or not entry.published:
                print(f"[SKIP] Not published in manifest: {source}")
                report.skipped.append(source)
                continue
            post = apply_manifest(post, entry)

        if post.draft and not cfg.include_drafts:
            print(f"[SKIP] Draft: {source}")
            report.skipped.append(source)
            continue

        posts.append(post)
    return posts


# ==============================
# Writing
# ==============================

def posts_json(index: Index, hero_urls: dict[str, str | None]) -> list[dict]:
    """Rows for posts.json; URLs are relative to the site root."""
    generated_at = datetime.datetime.now().isoformat(timespec="seconds")
    rows = []
    for p in index.posts:
        slug = index.slugs[p.source]
        rows.append({
            "title": p.title,
            "slug": slug,
            "source": p.source,
            "date": p.date.isoformat(),
            "tags": list(p.tags),
            "description": p.description,
            "featured": p.featured,
            "url": f"posts/{slug}.html",
            "hero_image": hero_urls.get(p.source),
            "generated_at": generated_at,
        })
    return rows


def build_site(cfg: SiteConfig) -> BuildReport:
    report = BuildReport()
    out = cfg.output_dir
    post_out = out / "posts"
    tag_out = out / "tags"

    posts = load_posts(cfg, report)
    index = build_index(posts)
    report.index = index

    asset_data = collect_assets(cfg.content_dir)
    assets = asset_paths(asset_data)
    post_base = relative_base(cfg, post_out)
    root_base = relative_base(cfg, out)

    # -------- Individual post pages --------
    heroes: dict[str, str | None] = {}
    for post in index.posts:
        rendered = render_post(post, base_path=post_base, assets=assets, pages=index.slugs)
        for w in rendered.warnings:
            print(f"[WARN] {w}")
        report.warnings.extend(rendered.warnings)
        heroes[post.source] = rendered.hero_asset

        out_path = post_out / f"{index.slugs[post.source]}.html"
        write_text(out_path, wrap_post_page(cfg, post, rendered.html, index.tag_slugs))
        report.written.append(out_path)
        print(f"[OK] Generated post: {out_path}")

    if cfg.fail_on_unresolved and report.warnings:
        raise report.warnings[0]

    def hero_url(source: str, base: str) -> str | None:
        hero = heroes.get(source)
        if hero is None or is_external(hero):
            return hero
        return asset_url(hero, base)

    # -------- JSON index + asset inventory --------
    root_heroes = {p.source: hero_url(p.source, root_base) for p in index.posts}
    blog_json_path = out / "posts.json"
    write_text(blog_json_path, json.dumps(posts_json(index, root_heroes), indent=2))
    report.written.append(blog_json_path)
    print(f"[OK] Wrote: {blog_json_path}")

    assets_json_path = out / "assets.json"
    write_assets_json(asset_data, assets_json_path)
    report.written.append(assets_json_path)

    css_path = out / "static" / "style.css"
    write_text(css_path, make_stylesheet(cfg))
    report.written.append(css_path)

    # -------- index.html --------
    featured = list(index.featured) or list(index.posts)
    index_html = wrap_index_page(
        cfg,
        featured=[make_card(p, f"posts/{index.slugs[p.source]}.html", hero_url(p.source, root_base)) for p in featured],
        cards=[make_card(p, f"posts/{index.slugs[p.source]}.html", hero_url(p.source, root_base)) for p in index.posts],
        tag_links=list(index.tag_slugs.items()),
    )
    index_path = out / "index.html"
    write_text(index_path, index_html)
    report.written.append(index_path)
    print(f"[OK] Wrote blog index: {index_path}")

    # -------- Tag pages --------
    for tag in index.tags:
        cards = [
            make_card(p, f"../posts/{index.slugs[p.source]}.html", hero_url(p.source, post_base))
            for p in index.posts_for_tag(tag)
        ]
        out_path = tag_out / f"{index.tag_slugs[tag]}.html"
        write_text(out_path, wrap_tag_page(cfg, tag, cards))
        report.written.append(out_path)
        print(f"[OK] Generated tag page: {out_path}")

    return report


def clean_output(cfg: SiteConfig, config_path: Path | None = None):
    """Remove the output folder, unless it holds the posts, manifest or config."""
    out = cfg.output_dir.resolve()
    for kept in (cfg.content_dir, cfg.manifest, config_path):
        if kept is None:
            continue
        kept = kept.resolve()
        if kept == out or out in kept.parents:
            raise BlogBuildError(f"Refusing to clean {cfg.output_dir}: it contains {kept}")

    if out.exists():
        shutil.rmtree(out)
        print(f"[OK] Removed: {cfg.output_dir}")


# ==============================
# MAIN
# ==============================

def make_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Build a static blog from Markdown posts with front matter.")
    ap.add_argument("--config", default=None, help="YAML config file (e.g. blog.yml)")
    ap.add_argument("--content", dest="content_dir", default=None, help="folder holding the Markdown posts")
    ap.add_argument("--out", dest="output_dir", default=None, help="folder to write the site into")
    ap.add_argument("--base-path", dest="base_path", default=None,
                    help="URL prefix for images and attachments on post pages")
    ap.add_argument("--manifest", default=None, help="publishing sheet (.xlsx or .csv)")
    ap.add_argument("--drafts", dest="include_drafts", action=argparse.BooleanOptionalAction, default=None,
                    help="include posts marked draft: true")
    ap.add_argument("--fail-fast", dest="fail_fast", action="store_true", default=None,
                    help="stop at the first malformed document")
    ap.add_argument("--strict-assets", dest="fail_on_unresolved", action="store_true", default=None,
                    help="treat unresolved images and links as errors")
    ap.add_argument("--clean", action="store_true", help="remove the output folder before building")
    return ap


def main(argv=None) -> int:
    args = make_arg_parser().parse_args(argv)

    overrides = {
        "content_dir": Path(args.content_dir) if args.content_dir else None,
        "output_dir": Path(args.output_dir) if args.output_dir else None,
        "base_path": args.base_path,
        "manifest": Path(args.manifest) if args.manifest else None,
        "include_drafts": args.include_drafts,
        "fail_fast": args.fail_fast,
        "fail_on_unresolved": args.fail_on_unresolved,
    }

    try:
        cfg = load_config(Path(args.config) if args.config else None, overrides)
        if args.clean:
            clean_output(cfg, Path(args.config) if args.config else None)
        report = build_site(cfg)
    except (BlogBuildError, FileNotFoundError, ValueError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    print(
        f"Built {len(report.index.posts)} posts, {len(report.index.tags)} tags "
        f"({len(report.failures)} failed, {len(report.skipped)} skipped, {len(report.warnings)} warnings)"
    )
    return 1 if report.failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
