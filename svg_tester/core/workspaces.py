from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO

from svg_tester.core.errors import WorkspaceIOError
from svg_tester.domain import SOURCE_DIRNAME, Job

logger = logging.getLogger(__name__)


def new_job_id(prefix: str = "openmoji-") -> str:
    return f"{prefix}{uuid.uuid4().hex}"


def allocate_job(root: Path, *, prefix: str = "openmoji-") -> Job:
    """Create a fresh workspace directory and return the job bound to it."""

    job_id = new_job_id(prefix)
    workspace = (Path(root) / job_id).resolve()
    try:
        # exist_ok=False: a clash means two jobs would share a workspace
        workspace.mkdir(parents=True, exist_ok=False)
        (workspace / SOURCE_DIRNAME).mkdir()
    except OSError as exc:
        raise WorkspaceIOError(f"Could not create workspace for {job_id}: {exc.strerror or exc}") from exc
    logger.debug("Allocated workspace %s", workspace)
    return Job(job_id=job_id, workspace=workspace)


def save_raw_file(job: Job, filename: str, source: BinaryIO) -> Path:
    """Persist an uploaded file verbatim under the job source folder."""

    safe_name = Path(filename).name
    target = job.source_dir / safe_name
    try:
        with target.open("wb") as buffer:
            shutil.copyfileobj(source, buffer)
    except OSError as exc:
        raise WorkspaceIOError(f"Could not store {safe_name}: {exc.strerror or exc}", job=job) from exc
    return target


def remove_workspace(workspace: Path) -> bool:
    """Recursively delete a workspace; failures are logged, never raised."""

    try:
        shutil.rmtree(workspace)
    except FileNotFoundError:
        return False
    except OSError:
        logger.exception("Failed to remove workspace %s", workspace)
        return False
    logger.debug("Removed workspace %s", workspace)
    return True
