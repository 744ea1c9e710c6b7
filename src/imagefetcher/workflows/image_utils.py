"""Shared helper functions used by the image fetch workflow."""

from __future__ import annotations

import hashlib
from typing import Optional

from .image_config import (
    CONTENT_TYPE_EXTENSIONS,
    FALLBACK_EXTENSION,
    FILENAME_HASH_CHARS,
    FILENAME_PREFIX,
)


def is_remote_url(url: str) -> bool:
    """Return True for http(s) URLs; the scheme match is case-insensitive."""

    lowered = (url or "").lower()
    return lowered.startswith("http://") or lowered.startswith("https://")


def base_content_type(content_type: Optional[str]) -> str:
    """Lowercase media type with any ``;charset=...`` parameters dropped."""

    return (content_type or "").split(";")[0].strip().lower()


def is_image_content_type(content_type: Optional[str]) -> bool:
    return base_content_type(content_type).startswith("image/")


def extension_for_content_type(content_type: Optional[str]) -> str:
    """Map an image media type to a file extension (``.img`` when unknown)."""

    return CONTENT_TYPE_EXTENSIONS.get(base_content_type(content_type), FALLBACK_EXTENSION)


def hash_url(url: str) -> str:
    """Short, stable digest of a URL for file naming."""

    return hashlib.sha256(url.encode("utf-8")).hexdigest()[:FILENAME_HASH_CHARS]


def image_file_name(url: str, content_type: Optional[str]) -> str:
    return f"{FILENAME_PREFIX}{hash_url(url)}{extension_for_content_type(content_type)}"


def sanity_check() -> None:
    assert is_remote_url("HTTPS://example.com/a.png")
    assert not is_remote_url("images/a.png")
    assert is_image_content_type("Image/PNG; charset=binary")
    assert not is_image_content_type("text/html")
    assert extension_for_content_type("image/jpeg") == ".jpg"
    assert extension_for_content_type("image/x-unknown") == FALLBACK_EXTENSION
    assert image_file_name("https://x/1.png", "image/png") == image_file_name("https://x/1.png", "image/png")


sanity_check()

__all__ = [
    "is_remote_url",
    "base_content_type",
    "is_image_content_type",
    "extension_for_content_type",
    "hash_url",
    "image_file_name",
    "sanity_check",
]
