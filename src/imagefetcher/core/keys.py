"""Shared payload keys to avoid magic strings across imagefetcher modules."""

from __future__ import annotations

# Outcome keys
K_URL = "url"
K_LOCAL_PATH = "local_path"
K_ERROR = "error"
K_OK = "ok"

# Stats keys
K_SUCCESSFUL = "successful"
K_FAILED = "failed"
K_TOTAL = "total"
K_BYTES_DOWNLOADED = "bytes_downloaded"
