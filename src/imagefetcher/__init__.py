"""Localize remote markdown images before handing a document to a renderer."""

from .pipeline import LocalizeReport, localize_and_render, localize_markdown
from .workflows import (
    CleanupReport,
    ImageFetchConfig,
    ImageFetchError,
    ImageFetcher,
    ImageOutcome,
    WorkDirError,
)

__all__ = [
    "CleanupReport",
    "ImageFetchConfig",
    "ImageFetchError",
    "ImageFetcher",
    "ImageOutcome",
    "LocalizeReport",
    "WorkDirError",
    "localize_and_render",
    "localize_markdown",
]
