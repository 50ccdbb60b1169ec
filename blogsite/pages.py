import datetime
from html import escape

from .config import SiteConfig
from .index import prettify_tag
from .models import Post


def format_date(post: Post) -> str:
    if post.date.time() == datetime.time():
        return post.date.strftime("%Y-%m-%d")
    return post.date.strftime("%Y-%m-%d %H:%M")


def make_stylesheet(cfg: SiteConfig) -> str:
    return f"""body {{
  margin: 0;
  font-family: Lato, Helvetica, Arial, sans-serif;
  color: #000;
}}

.navbar {{
  display: flex;
  justify-content: space-between;
  align-items: center;
  padding: 18px 40px;
  border-bottom: 1px solid #e0e0e0;
}}
.navbar a {{
  color: #000;
  font-weight: 700;
  text-decoration: none;
  margin-left: 18px;
}}
.navbar a.active, .navbar a:hover {{
  color: {cfg.accent_color};
}}

.post-hero {{
  background: {cfg.header_gray};
}}
.post-hero-inner, .blog-post-wrapper, .listing-wrap {{
  max-width: 980px;
  margin: 0 auto;
  padding: 36px 40px;
}}
.post-tags, .card-tag {{
  color: {cfg.accent_color};
  font-weight: 700;
  letter-spacing: 1px;
  text-transform: uppercase;
}}
.post-tags a {{
  color: inherit;
  text-decoration: none;
}}
.post-title {{
  margin: 12px 0;
  font-size: 48px;
  line-height: 1.1;
}}
.post-date, .card-date {{
  color: #333;
  font-size: 14px;
}}
.post-description, .card-description {{
  line-height: 1.55;
}}

.post-body p, .post-body li {{
  font-size: 18px;
  line-height: 1.85;
}}
.post-body img {{
  max-width: 100%;
  height: auto;
  display: block;
  margin: 22px 0;
}}
.post-body pre {{
  background: #f6f8fa;
  border: 1px solid #e0e0e0;
  padding: 14px 16px;
  overflow-x: auto;
}}
.post-body code {{
  font-family: Menlo, Consolas, "Liberation Mono", monospace;
  font-size: 15px;
}}
.post-disclaimer {{
  margin-top: 48px;
  padding-top: 18px;
  border-top: 1px solid #000;
}}

.cat-row {{
  display: flex;
  flex-wrap: wrap;
  gap: 12px;
}}
.cat-chip {{
  padding: 8px 14px;
  border: 1px solid #000;
  border-radius: 999px;
  color: #000;
  font-weight: 700;
  text-decoration: none;
}}
.cat-chip:hover {{
  color: {cfg.accent_color};
  border-color: {cfg.accent_color};
}}

.card {{
  display: grid;
  grid-template-columns: 200px 1fr;
  gap: 20px;
  padding: 20px 0;
  border-bottom: 1px solid #e0e0e0;
  color: #000;
  text-decoration: none;
}}
.card-img img {{
  width: 100%;
  object-fit: cover;
}}
.card-title {{
  margin: 6px 0;
  font-size: 22px;
}}
.card:hover .card-title, .back-link {{
  color: {cfg.accent_color};
}}

.site-footer {{
  padding: 24px 40px;
  border-top: 1px solid #e0e0e0;
  font-size: 14px;
}}
"""


# ==============================
# Shared page shell
# ==============================

def _footer_text(cfg: SiteConfig) -> str:
    if cfg.footer_text:
        return cfg.footer_text
    year = datetime.date.today().year
    owner = cfg.author_name or cfg.site_title
    return f"© {year} {owner}. All rights reserved."


def wrap_page(cfg: SiteConfig, title: str, root: str, main_html: str) -> str:
    """root is the relative path from the page back to the site root ('' or '..')."""
    prefix = f"{root}/" if root else ""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>{escape(title)}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <link rel="stylesheet" href="{prefix}static/style.css">
</head>

<body>

<header class="navbar">
  <a href="{prefix}index.html" class="logo">{escape(cfg.site_title)}</a>
  <nav class="navbar-right">
    <a href="{prefix}index.html" class="active">Blog</a>
  </nav>
</header>

<main>
{main_html}
</main>

<footer class="site-footer">
  {escape(_footer_text(cfg))}
</footer>

</body>
</html>
"""


# ==============================
# POST PAGE (posts/<slug>.html)
# ==============================

def make_post_header_block(cfg: SiteConfig, post: Post, tag_slugs: dict[str, str]) -> str:
    tags_html = "; ".join(
        f'<a href="../tags/{tag_slugs[t]}.html">{escape(prettify_tag(t))}</a>' if t in tag_slugs
        else escape(prettify_tag(t))
        for t in post.tags
    )
    description_html = (
        f'<div class="post-description">{escape(post.description)}</div>' if post.description else ""
    )
    author_html = f'<div class="post-author">By {escape(cfg.author_name)}</div>' if cfg.author_name else ""

    return f"""
<section class="post-hero">
  <div class="post-hero-inner">
    <div class="post-tags">{tags_html}</div>
    <h1 class="post-title">{escape(post.title)}</h1>
    <div class="post-date">{format_date(post)}</div>
    {description_html}
    {author_html}
  </div>
</section>
"""


def wrap_post_page(cfg: SiteConfig, post: Post, body_html: str, tag_slugs: dict[str, str]) -> str:
    disclaimer_html = (
        f'<div class="post-disclaimer">{escape(cfg.disclaimer)}</div>' if cfg.disclaimer else ""
    )
    main_html = f"""{make_post_header_block(cfg, post, tag_slugs)}
<div class="blog-post-wrapper">
  <article class="post-body">
{body_html}
    {disclaimer_html}
  </article>

  <a class="back-link" href="../index.html">← Back to Blog</a>
</div>"""
    return wrap_page(cfg, f"{post.title} | {cfg.site_title}", "..", main_html)


# ==============================
# Listings (index.html, tags/<tag>.html)
# ==============================

def make_card(post: Post, href: str, image: str | None) -> str:
    img_html = f'<div class="card-img"><img src="{escape(image)}" alt="{escape(post.title)}"></div>' if image \
        else '<div class="card-img"></div>'
    tag_label = f'<div class="card-tag">{escape(prettify_tag(post.tags[0]))}</div>' if post.tags else ""
    description = escape(post.description or "")

    return f"""
  <a class="card" href="{escape(href)}">
    {img_html}
    <div class="card-body">
      {tag_label}
      <h2 class="card-title">{escape(post.title)}</h2>
      <div class="card-date">{format_date(post)}</div>
      <div class="card-description">{description}</div>
    </div>
  </a>"""


def wrap_index_page(cfg: SiteConfig, featured: list[str], cards: list[str], tag_links: list[tuple[str, str]]) -> str:
    cat_html = "".join(
        f'<a class="cat-chip" href="tags/{slug}.html">{escape(prettify_tag(t))}</a>'
        for t, slug in tag_links
    )
    featured_html = "\n".join(featured)
    cards_html = "\n".join(cards)

    main_html = f"""<div class="listing-wrap">
  <h1>{escape(cfg.site_title)}</h1>

  <section class="blog-cats">
    <h3>Categories</h3>
    <div class="cat-row">{cat_html}</div>
  </section>

  <section class="featured">
    <h3>Featured Articles</h3>
    {featured_html}
  </section>

  <section class="all-posts">
    <h3>All Articles</h3>
    {cards_html}
  </section>
</div>"""
    return wrap_page(cfg, cfg.site_title, "", main_html)


def wrap_tag_page(cfg: SiteConfig, tag: str, cards: list[str]) -> str:
    tag_pretty = prettify_tag(tag)
    cards_html = "\n".join(cards)
    main_html = f"""<div class="listing-wrap">
  <h1 class="tag-page-title">{escape(tag_pretty)}</h1>
  {cards_html}
  <a class="back-link" href="../index.html">← Back to Blog</a>
</div>"""
    return wrap_page(cfg, f"{tag_pretty} | {cfg.site_title}", "..", main_html)
