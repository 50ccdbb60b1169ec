"""Static blog builder: Markdown posts with YAML front matter in, HTML pages out."""

from .errors import BlogBuildError, MalformedFrontMatter, ManifestError, UnresolvedAsset
from .index import Index, build_index
from .models import AssetRef, Block, Post
from .parser import parse_document, serialize_front_matter
from .render import RenderedPost, render_post

__version__ = "0.1.0"

__all__ = [
    "AssetRef",
    "Block",
    "BlogBuildError",
    "Index",
    "MalformedFrontMatter",
    "ManifestError",
    "Post",
    "RenderedPost",
    "UnresolvedAsset",
    "build_index",
    "parse_document",
    "render_post",
    "serialize_front_matter",
]
