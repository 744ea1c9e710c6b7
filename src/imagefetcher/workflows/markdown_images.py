"""Markdown image reference scanning and rewriting."""

from __future__ import annotations

import re
from typing import List, Mapping

from .image_utils import is_remote_url

# ![alt](target); unbalanced brackets simply do not match.
IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")


def extract_remote_image_urls(text: str) -> List[str]:
    """Return remote image URLs in first-seen order, exact duplicates removed."""

    urls: List[str] = []
    seen = set()
    for match in IMAGE_PATTERN.finditer(text or ""):
        target = match.group(2)
        if not is_remote_url(target) or target in seen:
            continue
        seen.add(target)
        urls.append(target)
    return urls


def rewrite_image_urls(text: str, mapping: Mapping[str, str]) -> str:
    """Point image references at local copies.

    Only targets present in ``mapping`` are touched; the alt text is kept
    verbatim and every other reference is returned byte-for-byte.
    """

    if not text or not mapping:
        return text

    def _swap(match: "re.Match[str]") -> str:
        local_path = mapping.get(match.group(2))
        if local_path is None:
            return match.group(0)
        return f"![{match.group(1)}]({local_path})"

    return IMAGE_PATTERN.sub(_swap, text)
