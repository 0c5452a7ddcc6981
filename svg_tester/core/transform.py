from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

from svg_tester.domain import Job, JobState
from svg_tester.infrastructure import OutlineTransformer

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TransformOutcome:
    filename: str
    ok: bool
    error: str | None = None


def _replace_contents(path: Path, text: str) -> None:
    """Swap in new contents so a failed write never truncates the original."""

    pending = path.with_name(f".{path.name}.outline")
    try:
        pending.write_text(text, encoding="utf-8")
        os.replace(pending, path)
    finally:
        pending.unlink(missing_ok=True)


def apply_outline(job: Job, transformer: OutlineTransformer) -> tuple[Job, list[TransformOutcome]]:
    """Rewrite each staged file with an outline, continuing past failures.

    A file that cannot be transformed is left exactly as uploaded.
    """

    outcomes: list[TransformOutcome] = []
    for staged in job.files:
        try:
            original = staged.stored_path.read_text(encoding="utf-8")
            outlined = transformer.add_outline(original)
            _replace_contents(staged.stored_path, outlined)
        except Exception as exc:  # any single-file failure only degrades that file
            logger.warning("Adding outline failed for %s: %s: %s", staged.original_name, type(exc).__name__, exc)
            outcomes.append(TransformOutcome(staged.original_name, ok=False, error=f"{type(exc).__name__}: {exc}"))
            continue
        outcomes.append(TransformOutcome(staged.original_name, ok=True))

    return replace(job, state=JobState.TRANSFORMED), outcomes
