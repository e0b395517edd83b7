"""Merge engine: decides which team record a name belongs to.

All functions work on an explicit `SlugIndex` owned by the caller. Slug
collisions are resolved here and only here: names are unioned (discovery
order, exact string equality) and the logo path follows the slug.
"""

import re
from typing import Dict, Iterable, List, Optional

from loguru import logger

from team_registry.models.registry import RawRegionItem, RawTeam, SlugIndex
from team_registry.models.team import RegionEntry, TeamRecord
from team_registry.normalization.text import (
    SLUG_PATTERN,
    canonical_key,
    slug_from_logo,
    slugify,
    strip_rank_prefix,
)

_SLUG_RE = re.compile(SLUG_PATTERN)


class NormalizationError(Exception):
    """Custom exception for team name normalization errors."""

    pass


class UnresolvableNameError(NormalizationError):
    """Neither the name nor the logo path yields a usable slug."""

    pass


def _is_slug(value: Optional[str]) -> bool:
    return bool(value) and _SLUG_RE.match(value) is not None


def _clean_names(names: Iterable[str]) -> List[str]:
    """Rank-strips names, drops blanks and exact duplicates (order kept)."""
    cleaned: List[str] = []
    for name in names:
        name = strip_rank_prefix(name)
        if name and name not in cleaned:
            cleaned.append(name)
    return cleaned


def _slug_for(name: str, logo: Optional[str] = None) -> str:
    slug = slugify(name) if name else ""
    if not slug and logo:
        slug = slugify(slug_from_logo(logo))
    return slug


def _upsert(index: SlugIndex, slug: str) -> TeamRecord:
    record = index.get(slug)
    if record is None:
        record = index.add(TeamRecord(slug=slug))
    return record


def resolve(index: SlugIndex, raw_name: str, logo: Optional[str] = None) -> TeamRecord:
    """Finds or creates the record for `raw_name` and records the name on it.

    Args:
        index: Slug index for the current run. Mutated in place.
        raw_name: Name as scraped or read, possibly with a rank prefix.
        logo: Optional logo path used to derive the slug when the name alone
            produces none (e.g. a name made only of noise words).

    Returns:
        The matching or newly created TeamRecord.

    Raises:
        UnresolvableNameError: if no slug can be derived.
    """
    cleaned = strip_rank_prefix(raw_name or "")
    if not cleaned:
        raise UnresolvableNameError(f"Empty team name after cleaning: {raw_name!r}")

    slug = _slug_for(cleaned, logo)
    if not slug:
        raise UnresolvableNameError(
            f"No slug derivable for {raw_name!r} (logo: {logo!r})"
        )

    record = _upsert(index, slug)
    if record.add_name(cleaned):
        logger.debug(f"Recorded name '{cleaned}' under slug '{slug}'")
    return record


def clean_teams(raw_teams: Iterable[RawTeam]) -> List[TeamRecord]:
    """Rebuilds the master team list: one record per slug, sorted by slug.

    The first non-blank name of each team decides its slug (falling back to
    its logo path). Teams landing on an existing slug are folded into it.
    """
    index = SlugIndex()
    skipped = 0

    for position, team in enumerate(raw_teams):
        names = _clean_names(team.names)
        slug = _slug_for(names[0] if names else "", team.logo)
        if not slug:
            skipped += 1
            logger.debug(
                f"Skipping unresolvable team #{position}: names={team.names!r} logo={team.logo!r}"
            )
            continue
        _upsert(index, slug).add_names(names)

    if skipped:
        logger.warning(f"Dropped {skipped} team(s) without a usable name or logo.")
    return index.records()


def clean_regions(
    raw_regions: Dict[str, List[RawRegionItem]]
) -> Dict[str, List[RegionEntry]]:
    """De-duplicates each region list independently, keeping first appearances.

    An item is dropped when its slug was already seen earlier in the same
    region. No truncation happens here.
    """
    cleaned: Dict[str, List[RegionEntry]] = {}

    for code, items in raw_regions.items():
        seen_slugs = set()
        entries: List[RegionEntry] = []

        for item in items:
            name = strip_rank_prefix(item.names[0]) if item.names else ""
            if not name:
                name = strip_rank_prefix(item.slug)
            slug = slugify(name) or slugify(item.slug)
            if not slug:
                logger.debug(f"[{code}] Skipping unresolvable region item: {item!r}")
                continue

            if slug in seen_slugs:
                logger.debug(f"[{code}] Dropping duplicate '{name}' ({slug})")
                continue

            seen_slugs.add(slug)
            entries.append(RegionEntry(slug=slug, names=[name]))

        cleaned[code] = entries
    return cleaned


def index_from_teams(raw_teams: Iterable[RawTeam]) -> SlugIndex:
    """Seeds a SlugIndex from the registry's current team list.

    A team's slug comes from its logo path first, then its stored slug, then
    its first name, so records written by earlier runs keep their identity.
    """
    index = SlugIndex()

    for team in raw_teams:
        names = _clean_names(team.names)
        logo_slug = slug_from_logo(team.logo)
        if _is_slug(logo_slug):
            slug = logo_slug
        elif _is_slug(team.slug):
            slug = team.slug
        else:
            slug = _slug_for(names[0] if names else "", team.logo)

        if not slug:
            logger.debug(f"Not indexing team without slug: {team!r}")
            continue
        _upsert(index, slug).add_names(names)

    return index


def rank_candidates(raw_names: Iterable[str], top_n: int) -> List[str]:
    """Rank-strips scraped names, drops same-team repeats, keeps the top N.

    Repeats are detected with `canonical_key`, which is looser than the slug
    ("Gen.G" and "GenG" are one team within a scrape).
    """
    seen = set()
    ordered: List[str] = []

    for raw in raw_names:
        name = strip_rank_prefix(raw or "")
        key = canonical_key(name)
        if not name or not key or key in seen:
            continue
        seen.add(key)
        ordered.append(name)

    return ordered[:top_n]

