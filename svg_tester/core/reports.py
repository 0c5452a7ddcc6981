"""Report producers.

Two strategies share the same result, a ``report.html`` inside the job
workspace:

* validation: run the external tool and keep whatever report it wrote,
  or write a diagnostic fallback page when it wrote nothing;
* direct render: inline every staged SVG into the visual template.
"""
from __future__ import annotations

import html
import json
import logging
import os
import platform
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from svg_tester.core.errors import ExternalProcessError, WorkspaceIOError
from svg_tester.core.settings import ValidatorSettings
from svg_tester.domain import Job, JobState, ReportArtifact
from svg_tester.infrastructure import ValidationTool, ValidatorInvocation, ValidatorResult

logger = logging.getLogger(__name__)

RESULT_PLACEHOLDER = "{{{result}}}"

FALLBACK_TEMPLATE = """<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <title>SVG-Tester (error)</title>
    <style>
      body {{ font-family: system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial, sans-serif; padding: 16px; }}
      pre {{ background: #111; color: #eee; padding: 12px; overflow: auto; border-radius: 8px; }}
      .muted {{ color: #666; }}
    </style>
  </head>
  <body>
    <h1>SVG-Tester: validation tool failed</h1>
    <p class="muted">This is a fallback report generated by the tester service.</p>
    <h2>Error</h2>
    <pre>{error}</pre>
    <h2>stderr</h2>
    <pre>{stderr}</pre>
    <h2>stdout</h2>
    <pre>{stdout}</pre>
    <h2>Sanity</h2>
    <pre>{sanity}</pre>
  </body>
</html>
"""


def _artifact(path: Path, *, fallback: bool = False) -> ReportArtifact:
    return ReportArtifact(path=path, produced_at=datetime.now(timezone.utc), fallback=fallback)


def sanity_facts(job: Job, suite_dir: Path) -> dict[str, object]:
    suite = suite_dir if suite_dir.is_absolute() else Path(os.getcwd()) / suite_dir
    try:
        entries = sorted(item.name for item in suite.iterdir())[:20] if suite.is_dir() else []
    except OSError:
        entries = []
    return {
        "jobDir": str(job.workspace),
        "cwd": os.getcwd(),
        "python": platform.python_version(),
        "hasTestSuiteDir": suite.is_dir(),
        "testSuiteFiles": entries,
    }


def render_fallback_report(error: ExternalProcessError, result: ValidatorResult, sanity: dict[str, object]) -> str:
    details = error.describe()
    if result.launch_error:
        details = f"{details}\n{result.launch_error}"
    return FALLBACK_TEMPLATE.format(
        error=html.escape(details),
        stderr=html.escape(result.stderr or "(empty)"),
        stdout=html.escape(result.stdout or "(empty)"),
        sanity=html.escape(json.dumps(sanity, indent=2)),
    )


def produce_validation_report(job: Job, tool: ValidationTool, settings: ValidatorSettings) -> Job:
    if job.metadata_path is None:
        raise WorkspaceIOError("Metadata document was not written before validation", job=job)

    invocation = ValidatorInvocation(
        metadata_path=job.metadata_path,
        source_dir=job.source_dir,
        report_dir=job.workspace,
        report_filename=settings.report_filename,
    )
    result = tool.run(invocation)
    if result.artifact_present:
        # a non-zero exit here only means some icons failed validation
        logger.info(
            "Validation report for %s: %s",
            job.job_id,
            "all checks passed" if result.succeeded else f"checks failed (exit {result.exit_code})",
        )
        return replace(job, report=_artifact(result.report_path), state=JobState.REPORT_PRODUCED)

    if result.launch_error:
        message = "Validation tool could not be started"
    else:
        message = "Validation tool exited without writing a report"
    error = ExternalProcessError(
        message,
        exit_code=result.exit_code,
        job=job,
    )
    logger.error("%s for %s", error.describe(), job.job_id)
    page = render_fallback_report(error, result, sanity_facts(job, settings.suite_dir))
    try:
        invocation.report_path.write_text(page, encoding="utf-8")
    except OSError as exc:
        raise WorkspaceIOError(f"Could not write fallback report: {exc.strerror or exc}", job=job) from exc
    return replace(
        job,
        report=_artifact(invocation.report_path, fallback=True),
        state=JobState.REPORT_PRODUCED,
    )


def render_visual_fragment(filename: str, svg: str) -> str:
    return (
        '<div class="emoji">'
        f'<div class="title">{html.escape(filename)}</div>'
        f"<div>{svg}</div>"
        "</div>"
    )


def produce_visual_report(job: Job, template_path: Path, *, report_filename: str = "report.html") -> Job:
    try:
        template = template_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise WorkspaceIOError(f"Could not read report template {template_path.name}", job=job) from exc

    try:
        fragments = [
            render_visual_fragment(staged.original_name, staged.stored_path.read_text(encoding="utf-8", errors="replace"))
            for staged in job.files
        ]
        target = job.workspace / report_filename
        target.write_text(template.replace(RESULT_PLACEHOLDER, "".join(fragments), 1), encoding="utf-8")
    except OSError as exc:
        raise WorkspaceIOError(f"Could not write visual report: {exc.strerror or exc}", job=job) from exc
    return replace(job, report=_artifact(target), state=JobState.REPORT_PRODUCED)
