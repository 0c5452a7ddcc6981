"""Terminal responses and workspace cleanup.

Every response that leaves a job carries a :class:`WorkspaceCleanup`.
It runs only after the response's ASGI send sequence has finished, so a
report is never deleted while it is still being streamed, and it runs in
a ``finally`` so a failed send still removes the workspace.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from pathlib import Path

from starlette.responses import FileResponse, PlainTextResponse
from starlette.types import Receive, Scope, Send

from svg_tester.core.errors import ReportMissingError, TesterError
from svg_tester.core.workspaces import remove_workspace
from svg_tester.domain import Job, JobState

logger = logging.getLogger(__name__)


class WorkspaceCleanup:
    """Deletes one workspace, at most once."""

    def __init__(self, job_id: str, workspace: Path) -> None:
        self.job_id = job_id
        self.workspace = workspace
        self._fired = False
        self._lock = threading.Lock()

    @property
    def fired(self) -> bool:
        return self._fired

    def __call__(self) -> None:
        with self._lock:
            if self._fired:
                return
            self._fired = True
        remove_workspace(self.workspace)
        logger.debug("Job %s %s", self.job_id, JobState.CLEANED_UP.value)


class _CleanupAfterSend:
    def __init__(self, *args, cleanup: WorkspaceCleanup | None = None, **kwargs) -> None:
        self.cleanup = cleanup
        super().__init__(*args, **kwargs)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)  # type: ignore[misc]
        finally:
            # inline rather than in a thread so cancellation cannot skip it
            if self.cleanup is not None:
                self.cleanup()


class ReportFileResponse(_CleanupAfterSend, FileResponse):
    pass


class DiagnosticResponse(_CleanupAfterSend, PlainTextResponse):
    pass


def dispatch(job: Job, cleanup: WorkspaceCleanup) -> ReportFileResponse:
    """Send the job's report; the only place a successful body is produced."""

    report = job.report
    if report is None or not report.path.is_file():
        raise ReportMissingError(job=job)
    job = replace(job, state=JobState.DISPATCHED)
    logger.debug("Job %s %s (%s)", job.job_id, job.state.value, report.path.name)
    return ReportFileResponse(report.path, media_type="text/html", cleanup=cleanup)


def error_response(exc: TesterError, cleanup: WorkspaceCleanup | None) -> DiagnosticResponse:
    if exc.status_code >= 500:
        logger.error("Request failed with %s: %s", exc.status_code, exc.message)
    else:
        logger.info("Request rejected with %s: %s", exc.status_code, exc.message)
    return DiagnosticResponse(exc.public_message, status_code=exc.status_code, cleanup=cleanup)
