"""Validated shape of one code-list entry as read from an ontology file."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ldsync.domain.ports import CodeListEntry

# Header entries describing the list itself rather than one of its codes.
METADATA_IDENTIFIERS: frozenset[str] = frozenset(
    {
        "dataset",
        "IRISImpactCategories",
        "CanadianCorporateRegistries",
        "ICNPOsector",
        "StatsCanSector",
        "PopulationServed",
        "ProvinceTerritory",
        "OrgTypeGOC",
        "LocalityStatsCan",
    }
)
METADATA_KEYWORDS: tuple[str, ...] = (
    "Codelist",
    "Code List",
    "Categories",
    "Registries",
    "Dataset",
)


class CodeListItem(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    id: str = Field(alias="@id", min_length=1)
    identifier: str = Field(default="", alias="hasIdentifier")
    name: str = Field(alias="hasName", min_length=1)
    description: str | None = Field(default=None, alias="hasDescription")

    @field_validator("identifier", "name", "description", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @property
    def is_metadata(self) -> bool:
        if self.identifier in METADATA_IDENTIFIERS:
            return True
        return any(keyword in self.name for keyword in METADATA_KEYWORDS)

    def to_entry(self) -> CodeListEntry:
        return CodeListEntry(
            id=self.id,
            identifier=self.identifier,
            name=self.name,
            description=self.description or None,
        )
