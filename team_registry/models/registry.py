# team_registry/models/registry.py
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .team import RegionEntry, TeamRecord


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _text_or_default(value: Any, default: Any) -> Any:
    return value if isinstance(value, str) else default


class RawTeam(BaseModel):
    """A team object exactly as found in the registry file (possibly messy)."""

    model_config = ConfigDict(extra="ignore")

    logo: str = ""
    names: List[str] = Field(default_factory=list)
    slug: Optional[str] = None

    @field_validator("names", mode="before")
    @classmethod
    def _keep_string_names(cls, value: Any) -> List[str]:
        return _string_list(value)

    @field_validator("logo", mode="before")
    @classmethod
    def _logo_text(cls, value: Any) -> str:
        return _text_or_default(value, "")

    @field_validator("slug", mode="before")
    @classmethod
    def _slug_text(cls, value: Any) -> Optional[str]:
        return _text_or_default(value, None)


class RawRegionItem(BaseModel):
    """A region list item as found in the registry file."""

    model_config = ConfigDict(extra="allow")

    slug: str = ""
    names: List[str] = Field(default_factory=list)
    logo: str = ""

    @field_validator("names", mode="before")
    @classmethod
    def _keep_string_names(cls, value: Any) -> List[str]:
        return _string_list(value)

    @field_validator("slug", "logo", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _text_or_default(value, "")

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"slug": self.slug, "names": list(self.names), "logo": self.logo}
        data.update(self.model_extra or {})
        return data


# A stored item an expand run did not refresh is written back as it was read
RegionItem = Union[RegionEntry, RawRegionItem]


class RegistryDocument(BaseModel):
    """Permissive view of the input file.

    Malformed optional fields fall back to empty defaults instead of failing
    the run; only unparseable JSON is fatal (see storage.registry_file).
    """

    model_config = ConfigDict(extra="ignore")

    version: int = 1
    updated_at: Optional[str] = None
    teams: List[RawTeam] = Field(default_factory=list)
    regions: Dict[str, List[RawRegionItem]] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def _integer_version(cls, value: Any) -> int:
        if isinstance(value, bool):
            return 1
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return 1

    @field_validator("updated_at", mode="before")
    @classmethod
    def _timestamp_text(cls, value: Any) -> Optional[str]:
        return _text_or_default(value, None)

    @field_validator("teams", mode="before")
    @classmethod
    def _team_objects(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @field_validator("regions", mode="before")
    @classmethod
    def _region_lists(cls, value: Any) -> Dict[str, List[Any]]:
        if not isinstance(value, dict):
            return {}
        return {
            str(code): [item for item in items if isinstance(item, dict)]
            for code, items in value.items()
            if isinstance(items, list)
        }


class Registry(BaseModel):
    """The snapshot written back to disk."""

    version: int = 1
    updated_at: str
    teams: List[TeamRecord] = Field(default_factory=list)
    regions: Dict[str, List[RegionItem]] = Field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "updated_at": self.updated_at,
            "teams": [team.to_json() for team in self.teams],
            "regions": {
                code: [entry.to_json() for entry in entries]
                for code, entries in self.regions.items()
            },
        }


class SlugIndex:
    """Slug -> TeamRecord lookup owned by a single pipeline run."""

    def __init__(self) -> None:
        self._by_slug: Dict[str, TeamRecord] = {}

    def get(self, slug: str) -> Optional[TeamRecord]:
        return self._by_slug.get(slug)

    def add(self, record: TeamRecord) -> TeamRecord:
        if record.slug in self._by_slug:
            raise KeyError(f"Slug already indexed: {record.slug}")
        self._by_slug[record.slug] = record
        return record

    def records(self) -> List[TeamRecord]:
        """All records, ordered by slug (code-point order)."""
        return [self._by_slug[slug] for slug in sorted(self._by_slug)]

    def __contains__(self, slug: object) -> bool:
        return slug in self._by_slug

    def __len__(self) -> int:
        return len(self._by_slug)

    def __iter__(self) -> Iterator[TeamRecord]:
        return iter(self.records())
