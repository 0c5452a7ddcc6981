"""Domain entities for request-scoped test jobs."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

SOURCE_DIRNAME = "src"


class JobState(str, Enum):
    ALLOCATED = "allocated"
    STAGED = "staged"
    TRANSFORMED = "transformed"
    METADATA_RESOLVED = "metadata_resolved"
    REPORT_PRODUCED = "report_produced"
    DISPATCHED = "dispatched"
    FAILED = "failed"
    CLEANED_UP = "cleaned_up"


@dataclass(slots=True, frozen=True)
class UploadedFile:
    """A single file persisted inside a job workspace."""

    original_name: str
    stored_path: Path
    size_bytes: int
    declared_media_type: str | None = None

    @property
    def identifier(self) -> str:
        return Path(self.original_name).stem


@dataclass(slots=True, frozen=True)
class ReportArtifact:
    """The HTML report written once per job."""

    path: Path
    produced_at: datetime
    fallback: bool = False


@dataclass(slots=True, frozen=True)
class Job:
    """Isolated execution context for one request.

    Stages never mutate a job; they return an extended copy built with
    :func:`dataclasses.replace`.
    """

    job_id: str
    workspace: Path
    files: tuple[UploadedFile, ...] = field(default_factory=tuple)
    state: JobState = JobState.ALLOCATED
    metadata_path: Path | None = None
    report: ReportArtifact | None = None

    @property
    def source_dir(self) -> Path:
        """Where uploads live, apart from the metadata document and report."""

        return self.workspace / SOURCE_DIRNAME
