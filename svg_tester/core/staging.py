"""Upload validation and persistence into the job workspace."""
from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import BinaryIO, Protocol

from svg_tester.core.errors import PayloadTooLarge, ValidationInputError
from svg_tester.core.settings import UploadLimits
from svg_tester.core.workspaces import save_raw_file
from svg_tester.domain import Job, JobState, UploadedFile

EMPTY_BATCH_MESSAGE = "Please choose some OpenMoji svg files! :)"


class IncomingFile(Protocol):
    """What the stager needs from a multipart upload (Starlette's UploadFile fits)."""

    filename: str | None
    content_type: str | None
    file: BinaryIO


def _measure(upload: IncomingFile) -> int:
    stream = upload.file
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def stored_name(upload: IncomingFile) -> str:
    return Path(upload.filename or "").name


def _is_accepted_type(upload: IncomingFile, limits: UploadLimits) -> bool:
    name = stored_name(upload).lower()
    if any(name.endswith(ext) for ext in limits.allowed_extensions):
        return True
    media_type = (upload.content_type or "").split(";")[0].strip().lower()
    return bool(name) and media_type in limits.allowed_media_types


def check_batch(uploads: Sequence[IncomingFile], limits: UploadLimits) -> list[int]:
    """Validate the whole batch before anything is written; return file sizes."""

    if not uploads:
        raise ValidationInputError(EMPTY_BATCH_MESSAGE)
    if len(uploads) > limits.max_files:
        raise PayloadTooLarge(f"Too many files: at most {limits.max_files} are accepted.")

    sizes: list[int] = []
    for upload in uploads:
        if stored_name(upload) in {"", ".", ".."}:
            raise ValidationInputError(f"Invalid file name: {upload.filename!r}.")
        if not _is_accepted_type(upload, limits):
            allowed = ", ".join(limits.allowed_extensions)
            raise ValidationInputError(f"Only {allowed} files are allowed ({upload.filename or 'unnamed'}).")
        size = _measure(upload)
        if size > limits.max_file_bytes:
            raise PayloadTooLarge(
                f"File too large: {stored_name(upload)} exceeds {limits.max_file_bytes} bytes."
            )
        sizes.append(size)
    return sizes


def stage_uploads(job: Job, uploads: Sequence[IncomingFile], limits: UploadLimits) -> Job:
    """Persist an accepted batch, preserving submission order and filenames.

    Repeated names are not deduplicated; the last write wins on disk while
    every submission keeps its own entry.
    """

    sizes = check_batch(uploads, limits)
    staged: list[UploadedFile] = []
    for upload, size in zip(uploads, sizes):
        name = stored_name(upload)
        upload.file.seek(0)
        stored = save_raw_file(job, name, upload.file)
        staged.append(
            UploadedFile(
                original_name=name,
                stored_path=stored,
                size_bytes=size,
                declared_media_type=upload.content_type,
            )
        )
    return replace(job, files=tuple(staged), state=JobState.STAGED)
