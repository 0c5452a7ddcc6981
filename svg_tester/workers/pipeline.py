from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import Response

from svg_tester.core.catalog import Catalog
from svg_tester.core.dispatch import WorkspaceCleanup, dispatch, error_response
from svg_tester.core.errors import PayloadTooLarge, TesterError, ValidationInputError
from svg_tester.core.metadata import resolve_metadata
from svg_tester.core.reports import produce_validation_report, produce_visual_report
from svg_tester.core.settings import TesterSettings
from svg_tester.core.staging import IncomingFile, stage_uploads
from svg_tester.core.transform import TransformOutcome, apply_outline
from svg_tester.core.workspaces import allocate_job
from svg_tester.domain import Job, JobState
from svg_tester.infrastructure import OutlineTransformer, ValidationTool

logger = logging.getLogger(__name__)


class ReportStrategy(str, Enum):
    VALIDATION = "validation"
    DIRECT_RENDER = "direct_render"


@dataclass(frozen=True)
class PipelineOptions:
    name: str
    report_strategy: ReportStrategy
    include_transform: bool = False


SVG_TEST = PipelineOptions("test-svg", ReportStrategy.VALIDATION)
VISUAL_TEST = PipelineOptions("test-visual", ReportStrategy.DIRECT_RENDER, include_transform=True)


@dataclass
class PipelineRun:
    job: Job
    transform_outcomes: list[TransformOutcome] = field(default_factory=list)


class JobPipeline:
    """Runs one upload through staging, metadata and report production.

    :meth:`handle` is the request boundary: whatever happens after the
    workspace exists, exactly one response is returned and it carries the
    workspace cleanup.
    """

    def __init__(
        self,
        settings: TesterSettings,
        catalog: Catalog,
        validator: ValidationTool,
        transformer: OutlineTransformer,
    ) -> None:
        self._settings = settings
        self._catalog = catalog
        self._validator = validator
        self._transformer = transformer

    def execute(self, job: Job, uploads: Sequence[IncomingFile], options: PipelineOptions) -> PipelineRun:
        """Run every stage up to a produced report. Blocking."""

        settings = self._settings
        job = stage_uploads(job, uploads, settings.uploads)

        outcomes: list[TransformOutcome] = []
        if options.include_transform:
            job, outcomes = apply_outline(job, self._transformer)

        job, _ = resolve_metadata(job, self._catalog, filename=settings.validator.metadata_filename)

        if options.report_strategy is ReportStrategy.VALIDATION:
            job = produce_validation_report(job, self._validator, settings.validator)
        else:
            job = produce_visual_report(
                job,
                settings.visual_template,
                report_filename=settings.validator.report_filename,
            )
        return PipelineRun(job=job, transform_outcomes=outcomes)

    async def _read_uploads(self, request: Request) -> tuple[FormData, list[UploadFile]]:
        limits = self._settings.uploads
        try:
            form = await request.form(max_files=limits.max_files)
        except StarletteHTTPException as exc:
            detail = str(exc.detail)
            if detail.startswith("Too many files"):
                raise PayloadTooLarge(f"Too many files: at most {limits.max_files} are accepted.") from exc
            raise ValidationInputError(f"Malformed upload: {detail}") from exc
        uploads = [item for item in form.getlist(limits.field_name) if isinstance(item, UploadFile)]
        return form, uploads

    async def handle(self, request: Request, options: PipelineOptions) -> Response:
        try:
            job = await asyncio.to_thread(
                allocate_job, self._settings.tmp_root, prefix=self._settings.job_prefix
            )
        except TesterError as exc:
            return error_response(exc, None)

        cleanup = WorkspaceCleanup(job.job_id, job.workspace)
        form: FormData | None = None
        try:
            form, uploads = await self._read_uploads(request)
            run = await asyncio.to_thread(self.execute, job, uploads, options)
            failed = [outcome for outcome in run.transform_outcomes if not outcome.ok]
            if failed:
                logger.info(
                    "Outline skipped for %d of %d files in %s: %s",
                    len(failed),
                    len(run.transform_outcomes),
                    job.job_id,
                    ", ".join(outcome.filename for outcome in failed),
                )
            return dispatch(run.job, cleanup)
        except TesterError as exc:
            logger.debug("Job %s %s in %s", job.job_id, JobState.FAILED.value, options.name)
            return error_response(exc.bind(job), cleanup)
        except Exception:
            logger.exception("Unexpected failure in %s for %s", options.name, job.job_id)
            return error_response(TesterError("unexpected pipeline failure", job=job), cleanup)
        except BaseException:
            # cancelled before any response exists; nothing will send one
            cleanup()
            raise
        finally:
            if form is not None:
                await form.close()
