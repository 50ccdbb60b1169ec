import datetime
import posixpath
import re
from typing import Any

import pydantic
import yaml

from .errors import MalformedFrontMatter
from .models import (
    DEFAULT_CODE_LANGUAGE,
    KNOWN_KEYS,
    AssetRef,
    Block,
    FrontMatter,
    Post,
)

FENCE_OPEN_RE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
ATX_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
SETEXT_UNDERLINE_RE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")

WIKILINK_IMAGE_RE = re.compile(r"!\[\[(.+?)\]\]")
INLINE_LINK_RE = re.compile(
    r"(?P<bang>!?)\[(?P<label>(?:[^\[\]]|\[[^\]]*\])*)\]"
    r"\(\s*(?P<target><[^>]*>|(?:[^\s()]|\([^\s()]*\))+)(?P<title>\s+(?:\"[^\"]*\"|'[^']*'))?\s*\)"
)
REF_DEF_RE = re.compile(r"^(?P<lead> {0,3}\[[^\]]+\]:[ \t]*)(?P<target><[^>]*>|\S+)(?P<rest>.*)$", re.M)
CODE_SPAN_RE = re.compile(r"(`+).+?\1", re.S)

SINGLE_IMAGE_RE = re.compile(
    r"^\s*(?:!\[[^\]]*\]\((?:[^()]|\([^()]*\))*\)|!\[\[[^\]]+\]\])\s*$"
)


def safe_slug(s: str) -> str:
    s = str(s).strip()
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"[^a-zA-Z0-9\-_]", "", s)
    return s.lower() or "post"


# ==============================
# Front matter
# ==============================

def split_front_matter(text: str, source: str = "<string>") -> tuple[dict, str]:
    """
    Split a document into its YAML metadata mapping and Markdown body:

    ---
    title: Deploying to Fargate
    date: 2025-02-01
    tags: [aws, terraform]
    ---
    Body...
    """
    clean = text.lstrip("\ufeff")
    lines = clean.splitlines()

    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start >= len(lines) or lines[start].strip() != "---":
        raise MalformedFrontMatter(source, "missing front matter block")

    end = None
    for i in range(start + 1, len(lines)):
        if lines[i].strip() in ("---", "..."):
            end = i
            break
    if end is None:
        raise MalformedFrontMatter(source, "front matter block is not terminated")

    fm_text = "\n".join(lines[start + 1:end])
    try:
        meta = yaml.safe_load(fm_text)
    except yaml.YAMLError as e:
        raise MalformedFrontMatter(source, f"front matter is not valid YAML ({e})") from e

    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise MalformedFrontMatter(source, "front matter must be a mapping of key: value pairs")

    body = "\n".join(lines[end + 1:])
    return {str(k): v for k, v in meta.items()}, body


def parse_front_matter(meta: dict, source: str = "<string>") -> FrontMatter:
    fields = dict(meta)
    # tagline is the older name for description
    if fields.get("description") is None and "tagline" in fields:
        fields["description"] = fields.pop("tagline")

    missing = tuple(k for k in ("title", "date") if fields.get(k) in (None, ""))
    if missing:
        raise MalformedFrontMatter(source, f"missing required field(s): {', '.join(missing)}", missing)

    try:
        return FrontMatter.model_validate({k: fields[k] for k in KNOWN_KEYS if k in fields})
    except pydantic.ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise MalformedFrontMatter(source, problems) from e


def serialize_front_matter(post: Post) -> str:
    """Front matter text that parses back to the same field values."""
    if post.date.time() == datetime.time():
        date_value: Any = post.date.date()
    else:
        date_value = post.date

    data: dict[str, Any] = {"title": post.title, "date": date_value, "tags": list(post.tags)}
    if post.description is not None:
        data["description"] = post.description
    data["slug"] = post.slug
    if post.featured:
        data["featured"] = True
    if post.draft:
        data["draft"] = True
    data.update(post.extra)

    fm = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{fm}---\n"


# ==============================
# Body
# ==============================

def _outside_code_spans(text: str):
    """Yield the pieces of a prose chunk that are not inline code."""
    pos = 0
    for m in CODE_SPAN_RE.finditer(text):
        yield text[pos:m.start()]
        pos = m.end()
    yield text[pos:]


def extract_refs(text: str) -> tuple[AssetRef, ...]:
    refs = []
    for piece in _outside_code_spans(text):
        for m in WIKILINK_IMAGE_RE.finditer(piece):
            target = m.group(1).split("|")[0].strip()
            refs.append(AssetRef(kind="image", target=target, label="Image"))
        for m in INLINE_LINK_RE.finditer(piece):
            target = m.group("target").strip("<>")
            kind = "image" if m.group("bang") else "link"
            refs.append(AssetRef(kind=kind, target=target, label=m.group("label")))
        for m in REF_DEF_RE.finditer(piece):
            refs.append(AssetRef(kind="link", target=m.group("target").strip("<>")))
    return tuple(refs)


def _prose_block(chunk: list[str]) -> Block:
    text = "\n".join(chunk)

    if len(chunk) == 2 and chunk[0].strip() and SETEXT_UNDERLINE_RE.match(chunk[1]):
        level = 1 if chunk[1].strip().startswith("=") else 2
        heading = chunk[0].strip()
        return Block(kind="heading", text=heading, level=level, refs=extract_refs(heading))

    kind = "image" if SINGLE_IMAGE_RE.match(text) else "paragraph"
    return Block(kind=kind, text=text, refs=extract_refs(text))


def parse_body(body: str) -> tuple[Block, ...]:
    blocks: list[Block] = []
    chunk: list[str] = []

    def flush():
        if chunk:
            blocks.append(_prose_block(chunk))
            chunk.clear()

    lines = body.splitlines()
    i = 0
    while i < len(lines):
        line = lines[i]

        fence_m = FENCE_OPEN_RE.match(line)
        # a backtick fence's info string cannot itself contain backticks
        if fence_m and not (fence_m.group("fence")[0] == "`" and "`" in fence_m.group("info")):
            flush()
            fence = fence_m.group("fence")
            indent = len(fence_m.group("indent"))
            info = fence_m.group("info").strip()
            language = info.split()[0] if info else DEFAULT_CODE_LANGUAGE

            close_re = re.compile(r"^ {0,3}" + re.escape(fence[0]) + "{" + str(len(fence)) + r",}[ \t]*$")
            code_lines = []
            i += 1
            while i < len(lines) and not close_re.match(lines[i]):
                code_line = lines[i]
                # strip up to the opening fence's indentation
                strip = len(code_line) - len(code_line.lstrip(" "))
                code_lines.append(code_line[min(strip, indent):])
                i += 1
            # unclosed fences run to the end of the document
            i += 1
            blocks.append(Block(kind="code", text="\n".join(code_lines), language=language))
            continue

        heading_m = ATX_HEADING_RE.match(line)
        if heading_m:
            flush()
            text = (heading_m.group(2) or "").strip()
            blocks.append(Block(kind="heading", text=text, level=len(heading_m.group(1)),
                                refs=extract_refs(text)))
            i += 1
            continue

        if not line.strip():
            flush()
        else:
            chunk.append(line)
        i += 1

    flush()
    return tuple(blocks)


def _fence_for(code: str, char: str = "`") -> str:
    longest = max((len(m.group(0)) for m in re.finditer(re.escape(char) + "+", code)), default=0)
    return char * max(3, longest + 1)


def blocks_to_markdown(blocks, code_language=None) -> str:
    """
    Rebuild Markdown from parsed blocks.

    code_language, if given, maps a block's language to the tag written on
    the fence; the parsed block itself is left untouched.
    """
    parts = []
    for b in blocks:
        if b.kind == "heading":
            parts.append(f"{'#' * b.level} {b.text}".rstrip())
        elif b.kind == "code":
            lang = code_language(b.language) if code_language else b.language
            fence = _fence_for(b.text)
            code = f"{b.text}\n" if b.text else ""
            parts.append(f"{fence}{lang or ''}\n{code}{fence}")
        else:
            parts.append(b.text)
    return "\n\n".join(parts) + "\n"


# ==============================
# Documents
# ==============================

def parse_document(text: str, source: str) -> Post:
    meta, body = split_front_matter(text, source)
    fm = parse_front_matter(meta, source)

    stem = posixpath.splitext(posixpath.basename(source))[0]
    extra = {k: v for k, v in meta.items() if k not in KNOWN_KEYS}
    if meta.get("description") is None:
        extra.pop("tagline", None)

    return Post(
        source=source,
        title=fm.title,
        date=fm.date,
        slug=safe_slug(fm.slug or stem),
        tags=fm.tags,
        description=fm.description,
        featured=fm.featured,
        draft=fm.draft,
        extra=extra,
        body=parse_body(body),
    )
