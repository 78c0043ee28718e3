"""Optimistic replacement of poster files.

The optimizer writes a candidate beside the poster. The candidate replaces
the poster only if it is strictly smaller; otherwise it is thrown away and
the original stays. Neither outcome fails the run.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from webencode.core.formatting import format_file_size
from webencode.jobs.models import OptimizationOutcome

logger = logging.getLogger(__name__)


def _discard(candidate: Path) -> None:
    try:
        candidate.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove optimizer output %s: %s", candidate, e)


def apply_candidate(
    poster: Path,
    candidate: Path,
    returncode: int | None,
    failure: str | None = None,
) -> OptimizationOutcome:
    """Keep the optimizer's candidate only if it shrank the poster.

    Args:
        poster: Poster the optimizer was run on.
        candidate: File the optimizer wrote.
        returncode: Optimizer exit status (None if it never ran).
        failure: Why the optimizer did not finish normally (timeout, launch
            error). Any candidate is discarded when set.

    Returns:
        OptimizationOutcome describing which file was kept.

    Raises:
        OSError: If the original poster cannot be read.
    """
    original_size = poster.stat().st_size

    if failure is not None or returncode != 0:
        _discard(candidate)
        reason = failure or f"optimizer failed (exit {returncode})"
        logger.warning("%s for %s; keeping original", reason, poster.name)
        return OptimizationOutcome(
            original_size=original_size,
            message=f"{reason}, original kept",
        )

    if not candidate.exists():
        logger.warning(
            "Optimizer produced no output for %s; keeping original", poster.name
        )
        return OptimizationOutcome(
            original_size=original_size,
            message="optimizer produced no output, original kept",
        )

    candidate_size = candidate.stat().st_size
    # An empty file is never a valid JPEG even though it is "smaller"
    if 0 < candidate_size < original_size:
        os.replace(candidate, poster)
        saved = original_size - candidate_size
        logger.info(
            "Optimized %s: %s -> %s",
            poster.name,
            format_file_size(original_size),
            format_file_size(candidate_size),
        )
        return OptimizationOutcome(
            original_size=original_size,
            candidate_size=candidate_size,
            replaced=True,
            message=f"saved {format_file_size(saved)}",
        )

    _discard(candidate)
    logger.info(
        "Optimizer did not shrink %s (%s -> %s); keeping original",
        poster.name,
        format_file_size(original_size),
        format_file_size(candidate_size),
    )
    return OptimizationOutcome(
        original_size=original_size,
        candidate_size=candidate_size,
        message="no size reduction, original kept",
    )
