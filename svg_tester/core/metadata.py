from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

from svg_tester.core.catalog import Catalog
from svg_tester.core.errors import WorkspaceIOError
from svg_tester.core.schema import FileMetadataRecord
from svg_tester.domain import Job, JobState


def resolve_records(job: Job, catalog: Catalog) -> list[FileMetadataRecord]:
    """One record per staged file, in staging order; misses become placeholders."""

    records: list[FileMetadataRecord] = []
    for staged in job.files:
        entry = catalog.lookup(staged.identifier)
        if entry is None:
            records.append(FileMetadataRecord.placeholder(staged.identifier))
        else:
            records.append(FileMetadataRecord.from_entry(entry))
    return records


def write_metadata_document(path: Path, records: list[FileMetadataRecord]) -> Path:
    payload = [record.to_document() for record in records]
    with path.open("w", encoding="utf-8") as fp:
        json.dump(payload, fp, ensure_ascii=False, indent=2)
    return path


def resolve_metadata(job: Job, catalog: Catalog, *, filename: str = "openmoji.json") -> tuple[Job, list[FileMetadataRecord]]:
    records = resolve_records(job, catalog)
    target = job.workspace / filename
    try:
        write_metadata_document(target, records)
    except OSError as exc:
        raise WorkspaceIOError(f"Could not write metadata document: {exc.strerror or exc}", job=job) from exc
    return replace(job, metadata_path=target, state=JobState.METADATA_RESOLVED), records
