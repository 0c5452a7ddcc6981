"""Domain layer definitions."""

from .jobs import SOURCE_DIRNAME, Job, JobState, ReportArtifact, UploadedFile

__all__ = [
    "SOURCE_DIRNAME",
    "Job",
    "JobState",
    "ReportArtifact",
    "UploadedFile",
]
