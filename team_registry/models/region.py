# team_registry/models/region.py
from pydantic import BaseModel, ConfigDict


class Region(BaseModel):
    """A ranking region: its registry key and where its ranking page lives."""

    model_config = ConfigDict(frozen=True)

    code: str  # key under "regions" in the registry file, e.g. "EU"
    name: str
    url: str
