from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from .workflows.download_utils import CleanupReport
from .workflows.image_config import ImageFetchConfig
from .workflows.image_fetch import ImageFetcher, ImageOutcome

logger = logging.getLogger(__name__)


@dataclass
class LocalizeReport:
    """What the caller gets back after render + cleanup."""

    output: Any
    outcomes: List[ImageOutcome] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)
    cleanup: Optional[CleanupReport] = None

    @property
    def failures(self) -> Dict[str, str]:
        return {o.url: o.error for o in self.outcomes if o.error is not None}


def localize_markdown(
    text: str,
    work_dir: Path,
    config: Optional[ImageFetchConfig] = None,
) -> Tuple[str, ImageFetcher]:
    """Fetch remote images and return the rewritten body plus the fetcher.

    The caller owns the returned fetcher and must call ``cleanup()`` once the
    local copies are no longer needed.
    """

    fetcher = ImageFetcher(work_dir, config)
    rewritten = fetcher.localize(text)
    return rewritten, fetcher


def localize_and_render(
    text: str,
    work_dir: Path,
    render: Callable[[str], Any],
    config: Optional[ImageFetchConfig] = None,
) -> LocalizeReport:
    """Localize images, hand the body to ``render``, then clean up.

    Image failures are logged as a single warning block and the render still
    runs. Only a working-directory failure (``WorkDirError``) or an exception
    from ``render`` itself propagates; cleanup runs in either case.
    """

    fetcher = ImageFetcher(work_dir, config)
    try:
        rewritten = fetcher.localize(text)
        summary = fetcher.error_summary()
        if summary:
            logger.warning(summary)
        output = render(rewritten)
        report = LocalizeReport(
            output=output,
            outcomes=fetcher.outcomes(),
            stats=fetcher.download_stats(),
        )
    finally:
        cleanup = fetcher.cleanup()
    report.cleanup = cleanup
    return report
