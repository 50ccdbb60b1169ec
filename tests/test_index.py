import itertools

import pytest

from blogsite.index import build_index, prettify_tag, safe_tag_slug
from conftest import make_post


def test_newest_post_first():
    old = make_post("fargate/a.md", "2023-08-27", title="Fargate")
    new = make_post("fargate/b.md", "2025-02-01", title="Fargate")

    index = build_index([old, new])

    assert [p.source for p in index.posts] == ["fargate/b.md", "fargate/a.md"]


def test_order_holds_for_every_permutation():
    posts = [
        make_post("a.md", "2023-08-27"),
        make_post("b.md", "2025-02-01"),
        make_post("c.md", "2024-03-10T09:00:00"),
        make_post("d.md", "2024-03-10T08:00:00"),
    ]
    for perm in itertools.permutations(posts):
        dates = [p.date for p in build_index(perm).posts]
        assert dates == sorted(dates, reverse=True)


def test_equal_dates_keep_input_order():
    a = make_post("a.md", "2024-01-01")
    b = make_post("b.md", "2024-01-01")

    assert [p.source for p in build_index([a, b]).posts] == ["a.md", "b.md"]
    assert [p.source for p in build_index([b, a]).posts] == ["b.md", "a.md"]


def test_tag_mapping_is_complete():
    posts = [
        make_post("a.md", "2023-08-27", tags=["aws", "fargate"]),
        make_post("b.md", "2025-02-01", tags=["aws", "terraform"]),
        make_post("c.md", "2024-06-02"),
    ]
    index = build_index(posts)

    assert index.by_tag == {
        "aws": ("b.md", "a.md"),
        "fargate": ("a.md",),
        "terraform": ("b.md",),
    }
    for tag, sources in index.by_tag.items():
        assert sources
        for s in sources:
            assert tag in index.get(s).tags
    for p in posts:
        for t in p.tags:
            assert p.source in index.by_tag[t]


def test_tags_listed_by_display_name():
    posts = [make_post("a.md", "2024-01-01", tags=["terraform", "Case_Report", "aws"])]
    assert build_index(posts).tags == ("aws", "Case_Report", "terraform")


def test_duplicate_slugs_are_disambiguated():
    a = make_post("2023/fargate.md", "2023-08-27", title="Fargate")
    b = make_post("2025/fargate.md", "2025-02-01", title="Fargate")

    index = build_index([a, b])

    assert len(index.posts) == 2
    assert index.slugs == {"2025/fargate.md": "fargate", "2023/fargate.md": "fargate-2"}


def test_posts_for_tag_and_featured():
    posts = [
        make_post("a.md", "2023-08-27", tags=["aws"], featured=True),
        make_post("b.md", "2025-02-01", tags=["aws"]),
    ]
    index = build_index(posts)

    assert [p.source for p in index.posts_for_tag("aws")] == ["b.md", "a.md"]
    assert index.posts_for_tag("missing") == ()
    assert [p.source for p in index.featured] == ["a.md"]


def test_input_is_left_alone():
    posts = [make_post("a.md", "2023-08-27"), make_post("b.md", "2025-02-01")]
    build_index(posts)
    assert [p.source for p in posts] == ["a.md", "b.md"]


def test_tag_helpers():
    assert prettify_tag("Artificial_Intelligence") == "Artificial Intelligence"
    assert safe_tag_slug("Artificial_Intelligence") == "artificial-intelligence"
    assert safe_tag_slug("C++") == "c"


def test_index_maps_are_read_only():
    index = build_index([make_post("a.md", "2023-08-27", tags=["aws"])])
    with pytest.raises(TypeError):
        index.slugs["a.md"] = "other"
    with pytest.raises(TypeError):
        index.by_tag["aws"] = ()
    assert index.slugs == {"a.md": "a"}
