import posixpath
import re
from typing import Mapping
from urllib.parse import unquote, urlsplit

import markdown as md_lib
import pydantic

from .assets import asset_url
from .errors import UnresolvedAsset
from .models import DEFAULT_CODE_LANGUAGE, Block, Post
from .parser import (
    CODE_SPAN_RE,
    INLINE_LINK_RE,
    REF_DEF_RE,
    WIKILINK_IMAGE_RE,
    blocks_to_markdown,
)

UNRESOLVED_PLACEHOLDER = "#unresolved-asset"

MARKDOWN_EXTENSIONS = ["extra", "toc", "sane_lists", "smarty"]

URL_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")
# what the fenced_code extension accepts as a language
FENCE_LANGUAGE_RE = re.compile(r"^\{?\.?([\w#.+\-]+)\}?$")
INDENTED_CODE_RE = re.compile(r"^(?: {4}|\t)")


class RenderedPost(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(frozen=True, arbitrary_types_allowed=True)

    html: str
    warnings: tuple[UnresolvedAsset, ...] = ()
    # content-relative path (or absolute URL) of the first image
    hero_asset: str | None = None


def fence_language(language: str | None) -> str:
    m = FENCE_LANGUAGE_RE.match(language or "")
    return m.group(1) if m else DEFAULT_CODE_LANGUAGE


def is_external(target: str) -> bool:
    return (
        not target
        or target.startswith(("#", "/", "//"))
        or bool(URL_SCHEME_RE.match(target))
    )


class _Resolver:
    """Maps relative targets in one post to output URLs, noting misses."""

    def __init__(self, post: Post, base_path: str, assets: frozenset[str], pages: Mapping[str, str]):
        self.post = post
        self.base_path = base_path
        self.assets = assets
        self.pages = pages
        self.warnings: list[UnresolvedAsset] = []
        self.hero_asset: str | None = None

    def _content_path(self, path: str) -> str | None:
        rel = posixpath.normpath(posixpath.join(self.post.folder, unquote(path)))
        if rel == ".." or rel.startswith("../"):
            return None
        return rel

    def resolve(self, target: str, kind: str) -> str:
        if is_external(target):
            if kind == "image" and self.hero_asset is None and target and not target.startswith("#"):
                self.hero_asset = target
            return target

        parts = urlsplit(target)
        rel = self._content_path(parts.path)
        suffix = (f"?{parts.query}" if parts.query else "") + (f"#{parts.fragment}" if parts.fragment else "")

        if rel is not None and kind == "link" and rel in self.pages:
            return f"{self.pages[rel]}.html{suffix}"
        if rel is not None and rel in self.assets:
            if kind == "image" and self.hero_asset is None:
                self.hero_asset = rel
            return asset_url(rel, self.base_path) + suffix

        self.warnings.append(UnresolvedAsset(self.post.source, target, kind))
        return UNRESOLVED_PLACEHOLDER

    # ------------------------------
    # Markdown rewriting
    # ------------------------------

    def _rewrite_piece(self, text: str) -> str:
        def repl_wikilink(m):
            target = m.group(1).split("|")[0].strip()
            return f"![Image]({self.resolve(target, 'image')})"

        def repl_inline(m):
            raw = m.group("target")
            target = raw.strip("<>")
            kind = "image" if m.group("bang") else "link"
            url = self.resolve(target, kind)
            if url == target:
                return m.group(0)
            title = m.group("title") or ""
            if url == UNRESOLVED_PLACEHOLDER:
                # double quotes would close the Markdown title early
                shown = target.replace('"', "'")
                title = f' "unresolved: {shown}"'
            return f"{m.group('bang')}[{m.group('label')}]({url}{title})"

        def repl_def(m):
            target = m.group("target").strip("<>")
            url = self.resolve(target, "link")
            return f"{m.group('lead')}{url}{m.group('rest')}"

        text = WIKILINK_IMAGE_RE.sub(repl_wikilink, text)
        text = INLINE_LINK_RE.sub(repl_inline, text)
        return REF_DEF_RE.sub(repl_def, text)

    def rewrite(self, text: str) -> str:
        lines = text.splitlines()
        if lines and all(INDENTED_CODE_RE.match(l) for l in lines):
            return text

        out = []
        pos = 0
        for m in CODE_SPAN_RE.finditer(text):
            out.append(self._rewrite_piece(text[pos:m.start()]))
            out.append(m.group(0))
            pos = m.end()
        out.append(self._rewrite_piece(text[pos:]))
        return "".join(out)

    def rewrite_block(self, block: Block) -> Block:
        if block.kind == "code" or not block.refs:
            return block
        return block.model_copy(update={"text": self.rewrite(block.text)})


# ==============================
# Public API
# ==============================

def markdown_to_html(markdown_text: str) -> str:
    return md_lib.markdown(
        markdown_text,
        extensions=MARKDOWN_EXTENSIONS,
        output_format="html",
    )


def render_post(
    post: Post,
    *,
    base_path: str = "",
    assets: frozenset[str] = frozenset(),
    pages: Mapping[str, str] | None = None,
) -> RenderedPost:
    """
    Render a post body to HTML.

    base_path is prepended to content-relative asset paths; assets is the set
    of content-relative files that exist; pages maps post sources to their
    output slugs so posts can link to each other by file name.
    """
    resolver = _Resolver(post, base_path, assets, pages or {})
    blocks = [resolver.rewrite_block(b) for b in post.body]
    body_md = blocks_to_markdown(blocks, code_language=fence_language)

    return RenderedPost(
        html=markdown_to_html(body_md),
        warnings=tuple(resolver.warnings),
        hero_asset=resolver.hero_asset,
    )
