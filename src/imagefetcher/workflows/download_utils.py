"""Helper utilities for tearing down fetched images and reporting failures."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Mapping

logger = logging.getLogger(__name__)


@dataclass
class CleanupReport:
    """Outcome of a best-effort cleanup; warnings never become errors."""

    removed: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings


def remove_artifacts(paths: Iterable[str], work_dir: Path) -> CleanupReport:
    """Delete fetched files, then the working directory itself.

    Missing files are ignored; any other failure is logged and collected as a
    warning so the caller's flow is never interrupted.
    """

    report = CleanupReport()
    for path in paths:
        try:
            os.remove(path)
        except FileNotFoundError:
            continue
        except OSError as exc:
            message = f"Failed to remove temp image file {path}: {exc}"
            logger.warning(message)
            report.warnings.append(message)
            continue
        report.removed.append(path)

    if not Path(work_dir).is_dir():
        return report
    try:
        shutil.rmtree(work_dir)
    except FileNotFoundError:
        pass
    except OSError as exc:
        message = f"Failed to remove temp image directory {work_dir}: {exc}"
        logger.warning(message)
        report.warnings.append(message)
    return report


def format_failure_summary(errors: Mapping[str, str]) -> str:
    """Warning block listing each failed URL with its terminal reason."""

    if not errors:
        return ""
    lines = [f"Failed to download {len(errors)} image(s):"]
    for url in sorted(errors):
        lines.append(f"  - {url}")
        lines.append(f"    Reason: {errors[url]}")
    return "\n".join(lines)
