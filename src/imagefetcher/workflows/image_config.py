"""Image fetcher defaults (limits, status codes, content types, env knobs).

Centralizes static defaults so image_fetch.py has no embedded magic numbers.
Callers build an ImageFetchConfig (directly or via ``from_env``) and inject it
into the fetcher; nothing here is a process-wide registry.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Dict

from dotenv import load_dotenv

MIB = 1024 * 1024

# Limits
DEFAULT_MAX_CONCURRENT_DOWNLOADS = 5
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_MAX_BYTES_PER_IMAGE = 100 * MIB
DEFAULT_MAX_BYTES_PER_SESSION = 500 * MIB
DEFAULT_MAX_BACKOFF_SECONDS = 10.0
DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_USER_AGENT = "imagefetcher/0.1 (+markdown image localizer)"

# Status codes worth another attempt; every other non-200 status is final.
TRANSIENT_STATUS_CODES = frozenset({408, 429, 503, 504})

# Filenames
FILENAME_PREFIX = "image-"
FILENAME_HASH_CHARS = 16
FALLBACK_EXTENSION = ".img"
CONTENT_TYPE_EXTENSIONS: Dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
    "image/bmp": ".bmp",
    "image/tiff": ".tiff",
}

# Environment knobs
ENV_MAX_CONCURRENT = "IMAGEFETCH_MAX_CONCURRENT"
ENV_TIMEOUT_SECONDS = "IMAGEFETCH_TIMEOUT_SECONDS"
ENV_MAX_RETRIES = "IMAGEFETCH_MAX_RETRIES"
ENV_MAX_BYTES_PER_IMAGE = "IMAGEFETCH_MAX_BYTES_PER_IMAGE"
ENV_MAX_BYTES_PER_SESSION = "IMAGEFETCH_MAX_BYTES_PER_SESSION"


def _env_int(name: str, default: int = 0) -> int:
    try:
        raw = os.getenv(name, "")
        return int(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float = 0.0) -> float:
    try:
        raw = os.getenv(name, "")
        return float(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True, slots=True)
class ImageFetchConfig:
    """Immutable knobs for one image localization session."""

    max_concurrent_downloads: int = DEFAULT_MAX_CONCURRENT_DOWNLOADS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    max_bytes_per_image: int = DEFAULT_MAX_BYTES_PER_IMAGE
    max_bytes_per_session: int = DEFAULT_MAX_BYTES_PER_SESSION
    max_backoff_seconds: float = DEFAULT_MAX_BACKOFF_SECONDS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if self.max_concurrent_downloads < 1:
            raise ValueError("max_concurrent_downloads must be at least 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.max_bytes_per_image <= 0 or self.max_bytes_per_session <= 0:
            raise ValueError("byte limits must be positive")
        if self.max_backoff_seconds < 0:
            raise ValueError("max_backoff_seconds cannot be negative")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

    def with_timeout_seconds(self, seconds: float) -> "ImageFetchConfig":
        """Return a copy with a new per-request timeout; non-positive values are ignored."""
        if seconds > 0:
            return replace(self, timeout_seconds=float(seconds))
        return self

    def with_max_retries(self, retries: int) -> "ImageFetchConfig":
        """Return a copy with a new retry budget; negative values are ignored."""
        if retries >= 0:
            return replace(self, max_retries=int(retries))
        return self

    @classmethod
    def from_env(cls) -> "ImageFetchConfig":
        """Build a config from ``IMAGEFETCH_*`` variables (``.env`` honoured).

        Malformed or out-of-range values fall back to the defaults instead of
        failing the caller.
        """
        load_dotenv()
        concurrency = _env_int(ENV_MAX_CONCURRENT, DEFAULT_MAX_CONCURRENT_DOWNLOADS)
        timeout = _env_float(ENV_TIMEOUT_SECONDS, DEFAULT_TIMEOUT_SECONDS)
        retries = _env_int(ENV_MAX_RETRIES, DEFAULT_MAX_RETRIES)
        per_image = _env_int(ENV_MAX_BYTES_PER_IMAGE, DEFAULT_MAX_BYTES_PER_IMAGE)
        per_session = _env_int(ENV_MAX_BYTES_PER_SESSION, DEFAULT_MAX_BYTES_PER_SESSION)
        return cls(
            max_concurrent_downloads=concurrency if concurrency >= 1 else DEFAULT_MAX_CONCURRENT_DOWNLOADS,
            timeout_seconds=timeout if timeout > 0 else DEFAULT_TIMEOUT_SECONDS,
            max_retries=retries if retries >= 0 else DEFAULT_MAX_RETRIES,
            max_bytes_per_image=per_image if per_image > 0 else DEFAULT_MAX_BYTES_PER_IMAGE,
            max_bytes_per_session=per_session if per_session > 0 else DEFAULT_MAX_BYTES_PER_SESSION,
        )


DEFAULT_CONFIG = ImageFetchConfig()
