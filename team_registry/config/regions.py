from typing import Iterable, List, Optional

from loguru import logger

from team_registry.config.settings import settings
from team_registry.models.region import Region

# (code, display name, ranking page path), in processing order
REGION_TABLE = [
    ("EU", "Europe", "europe"),
    ("NA", "North America", "north-america"),
    ("BR", "Brazil", "brazil"),
    ("AP", "Asia Pacific", "asia-pacific"),
    ("KR", "Korea", "korea"),
    ("CN", "China", "china"),
    ("JP", "Japan", "japan"),
    ("LAS", "LA-S", "la-s"),
    ("LAN", "LA-N", "la-n"),
    ("OCE", "Oceania", "oceania"),
    ("MENA", "MENA", "mena"),
    ("GC", "GC", "gc"),
    ("CG", "Collegiate", "collegiate"),
]


def build_regions(
    codes: Optional[Iterable[str]] = None, base_url: Optional[str] = None
) -> List[Region]:
    """Returns the configured regions, optionally restricted to `codes`.

    Order always follows REGION_TABLE, whatever order `codes` is given in.
    """
    base = (base_url or settings.rankings_base_url).rstrip("/")
    wanted = {code.upper() for code in codes} if codes else None

    regions = [
        Region(code=code, name=name, url=f"{base}/{path}")
        for code, name, path in REGION_TABLE
        if wanted is None or code in wanted
    ]

    if wanted:
        unknown = wanted - {region.code for region in regions}
        if unknown:
            logger.warning(f"Ignoring unknown region codes: {sorted(unknown)}")
    return regions
