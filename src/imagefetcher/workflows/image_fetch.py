from __future__ import annotations

import asyncio
import json
import logging
import os
import random
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from ..core.keys import (
    K_BYTES_DOWNLOADED,
    K_ERROR,
    K_FAILED,
    K_LOCAL_PATH,
    K_OK,
    K_SUCCESSFUL,
    K_TOTAL,
    K_URL,
)
from .download_utils import CleanupReport, format_failure_summary, remove_artifacts
from .errors import (
    ContentTypeError,
    ImageHTTPError,
    QuotaExceededError,
    RetriesExhaustedError,
    WorkDirError,
    describe_error,
)
from .image_config import DEFAULT_CONFIG, FILENAME_PREFIX, ImageFetchConfig
from .image_utils import image_file_name, is_image_content_type
from .markdown_images import extract_remote_image_urls, rewrite_image_urls
from .retry_policy import RetryPolicy, is_transient
from .session_state import QuotaEnforcer, SessionState

logger = logging.getLogger(__name__)


@dataclass
class ImageOutcome:
    """Terminal result for one remote image URL."""

    url: str
    local_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.local_path is not None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {K_URL: self.url, K_OK: self.ok}
        if self.local_path is not None:
            payload[K_LOCAL_PATH] = self.local_path
        if self.error is not None:
            payload[K_ERROR] = self.error
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def _discard(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.debug("Could not discard partial image %s: %s", path, exc)


class ImageFetcher:
    """Downloads the remote images of a markdown document and rewrites it.

    One instance is one session: it owns the working directory, the shared
    state (cache, failure ledger, byte counter) and the retry policy. Failed
    images never abort ``process_document``; they are left with their
    original URL and reported through ``download_errors()``.

    Example::

        with ImageFetcher(Path("/tmp/doc-images")) as fetcher:
            body = fetcher.localize(markdown)
            render(body)
    """

    def __init__(
        self,
        work_dir: Path,
        config: Optional[ImageFetchConfig] = None,
        *,
        state: Optional[SessionState] = None,
        retry_policy: Optional[RetryPolicy] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.work_dir = Path(work_dir)
        self.config = config or DEFAULT_CONFIG
        self.state = state or SessionState()
        self.quota = QuotaEnforcer(
            self.state,
            max_bytes_per_image=self.config.max_bytes_per_image,
            max_bytes_per_session=self.config.max_bytes_per_session,
        )
        self.retry_policy = retry_policy or RetryPolicy(
            max_retries=self.config.max_retries,
            max_backoff_seconds=self.config.max_backoff_seconds,
            rng=rng,
        )
        self._seen_urls: List[str] = []

    def __enter__(self) -> "ImageFetcher":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.cleanup()

    # ------------------------------------------------------------------
    # Coordinator
    # ------------------------------------------------------------------

    async def process_document(self, text: str) -> str:
        """Fetch every remote image in ``text`` and return the rewritten body.

        Raises :class:`WorkDirError` when the working directory cannot be
        created; that is the only failure that reaches the caller.
        """

        try:
            self.work_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WorkDirError(str(self.work_dir), str(exc)) from exc

        urls = extract_remote_image_urls(text)
        if not urls:
            return text
        for url in urls:
            if url not in self._seen_urls:
                self._seen_urls.append(url)

        semaphore = asyncio.Semaphore(self.config.max_concurrent_downloads)
        connector = aiohttp.TCPConnector(limit=self.config.max_concurrent_downloads)
        headers = {"User-Agent": self.config.user_agent}
        async with aiohttp.ClientSession(connector=connector, headers=headers) as session:
            tasks = [asyncio.create_task(self._fetch_task(session, semaphore, url)) for url in urls]
            await asyncio.gather(*tasks)

        errors = self.state.errors()
        if errors:
            logger.debug("%d of %d images failed", len(errors), len(urls))
        return rewrite_image_urls(text, self.state.image_map())

    def localize(self, text: str) -> str:
        """Blocking wrapper around :meth:`process_document`."""
        return asyncio.run(self.process_document(text))

    async def _fetch_task(
        self,
        session: aiohttp.ClientSession,
        semaphore: asyncio.Semaphore,
        url: str,
    ) -> None:
        async with semaphore:
            try:
                await self.fetch_with_retry(session, url)
            except Exception as exc:  # individual image failures never abort the batch
                message = self._failure_message(exc)
                logger.debug("Image %s failed: %s", url, message)
                self.state.record_failure(url, message)

    def _failure_message(self, exc: BaseException) -> str:
        if isinstance(exc, asyncio.TimeoutError) and not str(exc).strip():
            return f"timed out after {self.config.timeout_seconds:g}s"
        if isinstance(exc, RetriesExhaustedError) and isinstance(exc.last_error, asyncio.TimeoutError):
            return f"{self._failure_message(exc.last_error)} (after {exc.attempts} attempts)"
        return describe_error(exc)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    async def fetch_with_retry(self, session: aiohttp.ClientSession, url: str) -> str:
        """Run :meth:`fetch_once`, retrying transient failures with backoff."""

        policy = self.retry_policy
        attempt = 0
        while True:
            try:
                return await self.fetch_once(session, url)
            except Exception as exc:
                if not is_transient(exc):
                    raise
                if not policy.should_retry(exc, attempt):
                    if attempt == 0:
                        raise
                    raise RetriesExhaustedError(url, attempt + 1, exc) from exc
                wait = policy.backoff(attempt)
                logger.debug(
                    "Transient failure for %s (attempt %d/%d): %s; retrying in %.2fs",
                    url,
                    attempt + 1,
                    policy.max_attempts,
                    describe_error(exc),
                    wait,
                )
                await asyncio.sleep(wait)
                attempt += 1

    async def fetch_once(self, session: aiohttp.ClientSession, url: str) -> str:
        """Single download attempt; returns the local path of the image."""

        cached = self.state.cached_path(url)
        if cached is not None:
            return cached

        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
        async with session.get(url, timeout=timeout) as resp:
            if resp.status != 200:
                raise ImageHTTPError(resp.status, resp.reason)
            content_type = resp.headers.get("Content-Type", "")
            if not is_image_content_type(content_type):
                raise ContentTypeError(content_type)

            declared = resp.content_length or 0
            if declared > 0:
                self.quota.validate(declared)

            destination = self.work_dir / image_file_name(url, content_type)
            partial, written = await self._stream_to_file(resp)

        try:
            if declared <= 0:
                self.quota.validate(written)
            os.replace(partial, destination)
        except BaseException:
            _discard(partial)
            raise

        local_path = str(destination)
        self.state.record_success(url, local_path, written)
        return local_path

    async def _stream_to_file(self, resp: aiohttp.ClientResponse) -> Tuple[Path, int]:
        """Stream the body into a private ``.part`` file inside the work dir.

        Concurrent attempts for the same URL each get their own file, so a
        failing attempt never touches the image another attempt already
        published under the final name.
        """

        limit = self.config.max_bytes_per_image
        written = 0
        with tempfile.NamedTemporaryFile(dir=self.work_dir, prefix=FILENAME_PREFIX, suffix=".part", delete=False) as fh:
            partial = Path(fh.name)
            try:
                async for chunk in resp.content.iter_chunked(self.config.chunk_size):
                    written += len(chunk)
                    if written > limit:
                        raise QuotaExceededError(written, limit, "image")
                    fh.write(chunk)
            except BaseException:
                fh.close()
                _discard(partial)
                raise
        return partial, written

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def image_map(self) -> Dict[str, str]:
        return self.state.image_map()

    def download_errors(self) -> Dict[str, str]:
        return self.state.errors()

    def set_image_path(self, url: str, local_path: str) -> None:
        self.state.set_image_path(url, local_path)

    def outcomes(self) -> List[ImageOutcome]:
        """Outcomes in first-seen document order."""

        image_map = self.state.image_map()
        errors = self.state.errors()
        ordered = list(self._seen_urls)
        ordered.extend(url for url in image_map if url not in ordered)
        results: List[ImageOutcome] = []
        for url in ordered:
            if url in image_map:
                results.append(ImageOutcome(url=url, local_path=image_map[url]))
            elif url in errors:
                results.append(ImageOutcome(url=url, error=errors[url]))
        return results

    def download_stats(self) -> Dict[str, int]:
        successful = len(self.state.image_map())
        failed = len(self.state.errors())
        return {
            K_SUCCESSFUL: successful,
            K_FAILED: failed,
            K_TOTAL: successful + failed,
            K_BYTES_DOWNLOADED: self.state.total_bytes,
        }

    def error_summary(self) -> str:
        return format_failure_summary(self.state.errors())

    def cleanup(self) -> CleanupReport:
        """Best-effort removal of fetched files and the working directory.

        The session ledger is emptied too, so a fetcher reused afterwards
        downloads again instead of serving paths that no longer exist.
        """

        report = remove_artifacts(self.state.local_paths(), self.work_dir)
        self.state.reset()
        self._seen_urls.clear()
        return report
