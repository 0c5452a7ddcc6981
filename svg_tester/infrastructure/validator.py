"""Invocation of the external icon validation tool.

The tool is opaque: it receives the metadata document and the folder of
staged icons and is expected to drop an HTML report into the report
directory.  Its exit code only says whether validations passed, so the
result records whether the artifact exists rather than raising.
"""
from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ValidatorInvocation:
    metadata_path: Path
    source_dir: Path
    report_dir: Path
    report_filename: str = "report.html"

    @property
    def report_path(self) -> Path:
        return self.report_dir / self.report_filename


@dataclass(slots=True)
class ValidatorResult:
    exit_code: int | None
    stdout: str
    stderr: str
    artifact_present: bool
    report_path: Path
    launch_error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class ValidationTool(Protocol):
    """Contract for validation tool runners."""

    def run(self, invocation: ValidatorInvocation) -> ValidatorResult:
        """Run the tool to completion and describe what it left behind."""


def _bounded(data: bytes | None, limit: int) -> str:
    if not data:
        return ""
    if len(data) <= limit:
        return data.decode("utf-8", errors="replace")
    dropped = len(data) - limit
    return data[:limit].decode("utf-8", errors="replace") + f"\n... [truncated {dropped} bytes]"


class SubprocessValidationTool:
    """Runs the tool as a child process built from an argv template.

    ``{metadata}``, ``{workspace}`` and ``{report_dir}`` inside any
    argument are replaced with the invocation paths.  No shell is used.
    """

    def __init__(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        max_output_bytes: int = 10 * 1024 * 1024,
    ) -> None:
        if not command:
            raise ValueError("validator command must not be empty")
        self._command = list(command)
        self._cwd = cwd
        self._max_output_bytes = max_output_bytes

    def build_argv(self, invocation: ValidatorInvocation) -> list[str]:
        replacements = {
            "{metadata}": str(invocation.metadata_path),
            "{workspace}": str(invocation.source_dir),
            "{report_dir}": str(invocation.report_dir),
        }
        argv: list[str] = []
        for arg in self._command:
            for placeholder, value in replacements.items():
                arg = arg.replace(placeholder, value)
            argv.append(arg)
        return argv

    def run(self, invocation: ValidatorInvocation) -> ValidatorResult:
        argv = self.build_argv(invocation)
        try:
            completed = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=self._cwd,
                check=False,
            )
        except OSError as exc:
            logger.error("Validator %s could not be started: %s", argv[0], exc)
            return ValidatorResult(
                exit_code=None,
                stdout="",
                stderr="",
                artifact_present=invocation.report_path.is_file(),
                report_path=invocation.report_path,
                launch_error=f"{type(exc).__name__}: {exc}",
            )

        present = invocation.report_path.is_file()
        logger.info(
            "Validator exited with %s for %s (report %s)",
            completed.returncode,
            invocation.source_dir.name,
            "present" if present else "missing",
        )
        return ValidatorResult(
            exit_code=completed.returncode,
            stdout=_bounded(completed.stdout, self._max_output_bytes),
            stderr=_bounded(completed.stderr, self._max_output_bytes),
            artifact_present=present,
            report_path=invocation.report_path,
        )
