"""Exception taxonomy for remote image localization.

Only :class:`WorkDirError` ever escapes ``ImageFetcher.process_document``; the
other errors are raised inside fetch tasks and end up as messages in the
failure ledger.
"""

from __future__ import annotations

from typing import Optional


class ImageFetchError(Exception):
    """Base class for all imagefetcher errors."""


class WorkDirError(ImageFetchError):
    """The working directory could not be created or written."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"failed to create image work dir {path}: {reason}")
        self.path = path
        self.reason = reason


class ImageHTTPError(ImageFetchError):
    """A response arrived with a status other than 200."""

    def __init__(self, status: int, reason: Optional[str] = None) -> None:
        text = f"HTTP {status}"
        if reason:
            text = f"{text} {reason}"
        super().__init__(text)
        self.status = status
        self.reason = reason


class ContentTypeError(ImageFetchError):
    """The response body is not declared as an image."""

    def __init__(self, content_type: str) -> None:
        super().__init__(f"invalid content type: {content_type or '<missing>'} (expected image/*)")
        self.content_type = content_type


class QuotaExceededError(ImageFetchError):
    """A download would break the per-image or per-session byte ceiling."""

    def __init__(self, size: int, limit: int, scope: str, current: int = 0) -> None:
        if scope == "session":
            text = f"session size limit exceeded: {current} + {size} > {limit}"
        else:
            text = f"image too large: {size} bytes (max {limit})"
        super().__init__(text)
        self.size = size
        self.limit = limit
        self.scope = scope
        self.current = current


class RetriesExhaustedError(ImageFetchError):
    """A transient failure persisted through the whole retry budget."""

    def __init__(self, url: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"{describe_error(last_error)} (after {attempts} attempts)")
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


def describe_error(exc: BaseException) -> str:
    """Human-readable message for the failure ledger."""

    text = str(exc).strip()
    if text:
        return text
    return type(exc).__name__
