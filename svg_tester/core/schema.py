from __future__ import annotations

import copy
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PLACEHOLDER_GLYPH = "�"

# The validator suite keys group based checks off these; they are blanked
# so an upload is never judged against its catalog grouping.
CLEARED_ATTRIBUTES = ("group", "subgroups")


class CatalogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: str
    display_glyph: str = ""
    attributes: dict[str, Any] = Field(default_factory=dict)


class FileMetadataRecord(BaseModel):
    """Metadata for one staged file, resolved against the catalog or not."""

    identifier: str
    resolved: bool
    display_glyph: str = PLACEHOLDER_GLYPH
    attributes: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "FileMetadataRecord":
        return cls(
            identifier=entry.identifier,
            resolved=True,
            display_glyph=entry.display_glyph,
            attributes=copy.deepcopy(entry.attributes),
        )

    @classmethod
    def placeholder(cls, identifier: str) -> "FileMetadataRecord":
        return cls(identifier=identifier, resolved=False)

    def to_document(self, *, identifier_key: str = "hexcode", glyph_key: str = "emoji") -> dict[str, Any]:
        """Flatten into the catalog's own record shape for the validator."""

        document: dict[str, Any] = copy.deepcopy(self.attributes)
        document[glyph_key] = self.display_glyph
        document[identifier_key] = self.identifier
        for key in CLEARED_ATTRIBUTES:
            document[key] = ""
        if not self.resolved:
            document["skintone"] = ""
        document["resolved"] = self.resolved
        return document
