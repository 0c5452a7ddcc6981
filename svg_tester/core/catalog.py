"""Read-only reference catalog loaded once at start-up."""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from svg_tester.core.schema import CatalogEntry

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """Raised when the catalog document cannot be interpreted."""


class Catalog(Mapping[str, CatalogEntry]):
    """Immutable identifier -> entry lookup.

    Safe to share between concurrent requests because nothing mutates it
    after construction.
    """

    def __init__(self, entries: Iterable[CatalogEntry] = ()) -> None:
        index: dict[str, CatalogEntry] = {}
        for entry in entries:
            index[entry.identifier] = entry
        self._entries = MappingProxyType(index)

    def __getitem__(self, identifier: str) -> CatalogEntry:
        return self._entries[identifier]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, identifier: str) -> CatalogEntry | None:
        return self._entries.get(identifier)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        *,
        identifier_key: str = "hexcode",
        glyph_key: str = "emoji",
    ) -> "Catalog":
        entries: list[CatalogEntry] = []
        for position, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise CatalogError(f"catalog record {position} is not an object")
            identifier = record.get(identifier_key)
            if not identifier:
                raise CatalogError(f"catalog record {position} has no {identifier_key!r}")
            entries.append(
                CatalogEntry(
                    identifier=str(identifier),
                    display_glyph=str(record.get(glyph_key) or ""),
                    attributes=dict(record),
                )
            )
        return cls(entries)


def load_catalog(path: Path) -> Catalog:
    """Load the catalog JSON array; a missing file yields an empty catalog."""

    if not path.exists():
        logger.warning("Catalog %s not found; every upload will resolve to a placeholder", path)
        return Catalog()
    with path.open("r", encoding="utf-8") as fp:
        try:
            data = json.load(fp)
        except json.JSONDecodeError as exc:
            raise CatalogError(f"catalog {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise CatalogError(f"catalog {path} must contain a JSON array")
    catalog = Catalog.from_records(data)
    logger.info("Loaded %d catalog entries from %s", len(catalog), path)
    return catalog
