# team_registry/models/team.py
from typing import Any, Dict, Iterable, List

from pydantic import BaseModel, Field, computed_field

from team_registry.normalization.text import SLUG_PATTERN, logo_path_for


class TeamRecord(BaseModel):
    """A canonical team: its slug plus every display name seen for it."""

    slug: str = Field(..., pattern=SLUG_PATTERN)
    names: List[str] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def logo(self) -> str:
        """Logo path, always derived from the slug."""
        return logo_path_for(self.slug)

    def add_name(self, name: str) -> bool:
        """Adds a display name unless it is already known. Returns True if added."""
        if not name or name in self.names:
            return False
        self.names.append(name)
        return True

    def add_names(self, names: Iterable[str]) -> None:
        for name in names:
            self.add_name(name)

    def to_json(self) -> Dict[str, Any]:
        return {"logo": self.logo, "names": list(self.names)}


class RegionEntry(BaseModel):
    """One team's row in a region's ranked list. Rank is the list position."""

    slug: str = Field(..., pattern=SLUG_PATTERN)
    names: List[str] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def logo(self) -> str:
        return logo_path_for(self.slug)

    @classmethod
    def from_record(cls, record: TeamRecord) -> "RegionEntry":
        return cls(slug=record.slug, names=list(record.names))

    def to_json(self) -> Dict[str, Any]:
        return {"slug": self.slug, "names": list(self.names), "logo": self.logo}
