"""Registry rebuild pipeline: the cleanup and expand passes.

Both passes take a parsed `RegistryDocument` and return a fresh `Registry`
snapshot; reading and writing the file is left to storage.registry_file.
"""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from loguru import logger
from pydantic import BaseModel, Field

from team_registry.models.region import Region
from team_registry.models.registry import RegionItem, Registry, RegistryDocument, SlugIndex
from team_registry.models.team import RegionEntry
from team_registry.normalization.merger import (
    UnresolvableNameError,
    clean_regions,
    clean_teams,
    index_from_teams,
    rank_candidates,
    resolve,
)
from team_registry.scrapers.base_scraper import ScraperError
from team_registry.scrapers.extraction import CandidateExtractor

DEFAULT_TOP_N = 30
DEFAULT_REGION_DELAY_SECONDS = 0.8


class RankingFetcher(Protocol):
    async def fetch_ranking_page(self, region: Region) -> str: ...


class ExpandResult(BaseModel):
    """Outcome of an expand run."""

    registry: Registry
    refreshed: List[str] = Field(default_factory=list)  # region codes
    failed: List[str] = Field(default_factory=list)


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with milliseconds, e.g. 2024-05-01T12:00:00.000Z."""
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def cleanup_registry(
    document: RegistryDocument, now: Optional[datetime] = None
) -> Registry:
    """Normalizes and de-duplicates the registry as it stands.

    `teams` and `regions` are cleaned independently; region entries are not
    checked against the team list.
    """
    teams = clean_teams(document.teams)
    regions = clean_regions(document.regions)

    logger.info(
        f"Cleaned teams: {len(document.teams)} -> {len(teams)}. Regions kept: {len(regions)}"
    )
    return Registry(
        version=document.version,
        updated_at=utc_timestamp(now),
        teams=teams,
        regions=regions,
    )


def _resolve_region(index: SlugIndex, region: Region, names: Sequence[str]) -> List[str]:
    slugs: List[str] = []
    for name in names:
        try:
            record = resolve(index, name)
        except UnresolvableNameError as e:
            logger.debug(f"[{region.code}] Skipping candidate: {e}")
            continue
        if record.slug not in slugs:
            slugs.append(record.slug)
    return slugs


async def expand_registry(
    document: RegistryDocument,
    regions: Sequence[Region],
    fetcher: RankingFetcher,
    extractor: CandidateExtractor,
    top_n: int = DEFAULT_TOP_N,
    delay_seconds: float = DEFAULT_REGION_DELAY_SECONDS,
    now: Optional[datetime] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ExpandResult:
    """Merges the current top-N of every region into the registry.

    Regions are fetched one at a time with a pause in between. A region whose
    fetch or extraction fails keeps its previous list (or gets an empty one)
    and the run carries on with the next region.
    """
    index = index_from_teams(document.teams)
    teams_before = len(index)
    # Regions that are not refreshed keep exactly what the file held
    regions_out: Dict[str, List[RegionItem]] = {
        code: list(items) for code, items in document.regions.items()
    }
    fresh: Dict[str, List[str]] = {}
    refreshed: List[str] = []
    failed: List[str] = []

    for position, region in enumerate(regions):
        logger.info(f"→ {region.name}")
        try:
            markup = await fetcher.fetch_ranking_page(region)
            names = rank_candidates(extractor.extract(markup), top_n)
            fresh[region.code] = _resolve_region(index, region, names)
            refreshed.append(region.code)
            logger.info(f"  {region.code}: {len(fresh[region.code])} ranked teams")
        except ScraperError as e:
            logger.error(f"  ✗ Failed {region.code}: {e}")
            failed.append(region.code)
            regions_out.setdefault(region.code, [])
        except Exception as e:
            logger.exception(f"  ✗ Unexpected error in {region.code}: {e}")
            failed.append(region.code)
            regions_out.setdefault(region.code, [])

        # be gentle to the ranking source
        if delay_seconds > 0 and position < len(regions) - 1:
            await sleep(delay_seconds)

    # Refreshed regions are built last so their names agree with `teams`
    for code, slugs in fresh.items():
        regions_out[code] = [RegionEntry.from_record(index.get(slug)) for slug in slugs]

    teams = index.records()
    logger.info(
        f"Teams: {teams_before} -> {len(teams)}. Regions refreshed: {len(refreshed)}, failed: {len(failed)}"
    )
    registry = Registry(
        version=document.version,
        updated_at=utc_timestamp(now),
        teams=teams,
        regions=regions_out,
    )
    return ExpandResult(registry=registry, refreshed=refreshed, failed=failed)
