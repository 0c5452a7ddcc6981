from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from svg_tester.domain import Job


GENERIC_SERVER_MESSAGE = "The upload could not be processed. Check server logs."
REPORT_MISSING_MESSAGE = "Report was not generated (report.html missing). Check server logs."


class TesterError(Exception):
    """Base class for failures that terminate a request with one response."""

    status_code = 500
    expose_message = False

    def __init__(self, message: str, *, job: "Job | None" = None) -> None:
        super().__init__(message)
        self.message = message
        self.job = job

    @property
    def public_message(self) -> str:
        """Text sent to the client; server-side details stay in the logs."""

        return self.message if self.expose_message else GENERIC_SERVER_MESSAGE

    def bind(self, job: "Job") -> "TesterError":
        if self.job is None:
            self.job = job
        return self


class ValidationInputError(TesterError):
    """Raised when the upload batch is empty or contains a non-SVG file."""

    status_code = 400
    expose_message = True


class PayloadTooLarge(TesterError):
    """Raised when a file or the batch exceeds the configured ceilings."""

    status_code = 413
    expose_message = True


class WorkspaceIOError(TesterError):
    """Raised when the job workspace cannot be created, read or written."""


class ExternalProcessError(TesterError):
    """The validation tool finished without producing a report artifact."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        job: "Job | None" = None,
    ) -> None:
        super().__init__(message, job=job)
        self.exit_code = exit_code

    def describe(self) -> str:
        code = "did not start" if self.exit_code is None else f"exit code {self.exit_code}"
        return f"{self.message} ({code})"


class TransformError(TesterError):
    """Outline augmentation failed for a single file."""


class ReportMissingError(TesterError):
    expose_message = True

    def __init__(self, *, job: "Job | None" = None) -> None:
        super().__init__(REPORT_MISSING_MESSAGE, job=job)
