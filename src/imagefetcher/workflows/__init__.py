"""High-level exports for the image fetch workflows."""

from .download_utils import CleanupReport, format_failure_summary, remove_artifacts
from .errors import (
    ContentTypeError,
    ImageFetchError,
    ImageHTTPError,
    QuotaExceededError,
    RetriesExhaustedError,
    WorkDirError,
)
from .image_config import DEFAULT_CONFIG, ImageFetchConfig
from .image_fetch import ImageFetcher, ImageOutcome
from .markdown_images import extract_remote_image_urls, rewrite_image_urls
from .retry_policy import RetryPolicy, is_transient
from .session_state import QuotaEnforcer, SessionState

__all__ = [
    "CleanupReport",
    "ContentTypeError",
    "DEFAULT_CONFIG",
    "ImageFetchConfig",
    "ImageFetchError",
    "ImageFetcher",
    "ImageHTTPError",
    "ImageOutcome",
    "QuotaEnforcer",
    "QuotaExceededError",
    "RetriesExhaustedError",
    "RetryPolicy",
    "SessionState",
    "WorkDirError",
    "extract_remote_image_urls",
    "format_failure_summary",
    "is_transient",
    "remove_artifacts",
    "rewrite_image_urls",
]
