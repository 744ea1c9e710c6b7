"""Lock-guarded session ledger and byte quota enforcement."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from .errors import QuotaExceededError
from .image_config import DEFAULT_MAX_BYTES_PER_IMAGE, DEFAULT_MAX_BYTES_PER_SESSION


class SessionState:
    """URL->path cache, URL->error ledger and a running byte counter.

    Every mutation happens under one lock that is held only for the map or
    counter update, never across network I/O.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._image_map: Dict[str, str] = {}
        self._errors: Dict[str, str] = {}
        self._total_bytes = 0

    def cached_path(self, url: str) -> Optional[str]:
        with self._lock:
            return self._image_map.get(url)

    def set_image_path(self, url: str, local_path: str) -> None:
        """Seed the cache directly (no byte accounting)."""
        with self._lock:
            self._image_map[url] = local_path
            self._errors.pop(url, None)

    def record_download(self, nbytes: int) -> None:
        with self._lock:
            self._total_bytes += nbytes

    def record_success(self, url: str, local_path: str, nbytes: int) -> None:
        with self._lock:
            self._image_map[url] = local_path
            self._errors.pop(url, None)
            self._total_bytes += nbytes

    def record_failure(self, url: str, message: str) -> None:
        with self._lock:
            if url in self._image_map:
                return
            self._errors[url] = message

    @property
    def total_bytes(self) -> int:
        with self._lock:
            return self._total_bytes

    def image_map(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._image_map)

    def errors(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._errors)

    def local_paths(self) -> List[str]:
        with self._lock:
            return list(self._image_map.values())

    def reset(self) -> None:
        """Forget every cached path, recorded failure and counted byte."""
        with self._lock:
            self._image_map.clear()
            self._errors.clear()
            self._total_bytes = 0


class QuotaEnforcer:
    """Per-image and per-session byte ceilings.

    ``validate`` reads the session counter under the state lock but the bytes
    are only added later by ``record_download``/``record_success``. Two large
    downloads validated concurrently can therefore both pass and jointly
    overshoot the session ceiling.
    """

    def __init__(
        self,
        state: SessionState,
        max_bytes_per_image: int = DEFAULT_MAX_BYTES_PER_IMAGE,
        max_bytes_per_session: int = DEFAULT_MAX_BYTES_PER_SESSION,
    ) -> None:
        self.state = state
        self.max_bytes_per_image = max_bytes_per_image
        self.max_bytes_per_session = max_bytes_per_session

    def validate(self, size: int) -> None:
        if size > self.max_bytes_per_image:
            raise QuotaExceededError(size, self.max_bytes_per_image, "image")
        current = self.state.total_bytes
        if current + size > self.max_bytes_per_session:
            raise QuotaExceededError(size, self.max_bytes_per_session, "session", current=current)
