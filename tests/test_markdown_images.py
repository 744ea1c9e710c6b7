from imagefetcher.workflows.image_utils import (
    extension_for_content_type,
    image_file_name,
    is_image_content_type,
    is_remote_url,
)
from imagefetcher.workflows.markdown_images import extract_remote_image_urls, rewrite_image_urls


def test_extract_keeps_first_seen_order_and_drops_duplicates():
    doc = (
        "![b](https://cdn.example.com/b.png)\n"
        "![a](http://example.com/a.jpg)\n"
        "![again](https://cdn.example.com/b.png)\n"
    )
    assert extract_remote_image_urls(doc) == [
        "https://cdn.example.com/b.png",
        "http://example.com/a.jpg",
    ]


def test_extract_ignores_local_paths_links_and_other_schemes():
    doc = (
        "![local](images/logo.png)\n"
        "![abs](/var/tmp/x.png)\n"
        "[not an image](https://example.com/page)\n"
        "![ftp](ftp://example.com/x.png)\n"
        "![data](data:image/png;base64,AAAA)\n"
    )
    assert extract_remote_image_urls(doc) == []


def test_extract_matches_scheme_case_insensitively():
    assert extract_remote_image_urls("![x](HTTPS://Example.com/X.PNG)") == ["HTTPS://Example.com/X.PNG"]


def test_extract_returns_empty_list_for_empty_and_malformed_input():
    assert extract_remote_image_urls("") == []
    assert extract_remote_image_urls("![broken(https://example.com/a.png)") == []
    assert extract_remote_image_urls("![broken]https://example.com/a.png") == []


def test_rewrite_replaces_only_resolved_urls_and_keeps_alt_text():
    doc = (
        "Intro ![A *fancy* alt](https://example.com/a.png) and "
        "![other](https://example.com/missing.png) plus ![local](img/l.png)."
    )
    mapping = {"https://example.com/a.png": "/tmp/work/image-abc.png"}

    output = rewrite_image_urls(doc, mapping)

    assert output == (
        "Intro ![A *fancy* alt](/tmp/work/image-abc.png) and "
        "![other](https://example.com/missing.png) plus ![local](img/l.png)."
    )


def test_rewrite_is_idempotent():
    doc = "![a](https://example.com/a.png)\n![a again](https://example.com/a.png)\n"
    mapping = {"https://example.com/a.png": "/tmp/work/image-abc.png"}

    once = rewrite_image_urls(doc, mapping)
    twice = rewrite_image_urls(once, mapping)

    assert once == twice
    assert once.count("/tmp/work/image-abc.png") == 2


def test_rewrite_with_empty_mapping_returns_input():
    doc = "![a](https://example.com/a.png)"
    assert rewrite_image_urls(doc, {}) is doc


def test_content_type_helpers():
    assert is_remote_url("http://x")
    assert not is_remote_url("httpx://x")
    assert is_image_content_type("image/svg+xml")
    assert not is_image_content_type("")
    assert extension_for_content_type("image/svg+xml; charset=utf-8") == ".svg"
    assert extension_for_content_type("image/avif") == ".img"


def test_image_file_name_is_deterministic_and_distinct():
    first = image_file_name("https://example.com/a.png", "image/png")
    assert first == image_file_name("https://example.com/a.png", "image/png")
    assert first != image_file_name("https://example.com/b.png", "image/png")
    assert first.startswith("image-") and first.endswith(".png")
