"""
tests/test_rebuild_pipeline.py

Purpose:
    Cleanup and expand passes end to end, with fake ranking fetchers.
"""

import json
from datetime import datetime, timezone

import pytest

from team_registry.models.region import Region
from team_registry.models.registry import RegistryDocument
from team_registry.pipeline.rebuild import (
    cleanup_registry,
    expand_registry,
    utc_timestamp,
)
from team_registry.scrapers.base_scraper import ScraperError
from team_registry.scrapers.extraction import ExtractionError
from team_registry.storage.registry_file import dump_registry

NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)

EU = Region(code="EU", name="Europe", url="https://example.test/rankings/europe")
KR = Region(code="KR", name="Korea", url="https://example.test/rankings/korea")
NA = Region(code="NA", name="North America", url="https://example.test/rankings/north-america")


class FakeFetcher:
    """Returns canned markup per region code; raises for codes in `failing`."""

    def __init__(self, pages, failing=()):
        self.pages = pages
        self.failing = set(failing)
        self.calls = []

    async def fetch_ranking_page(self, region):
        self.calls.append(region.code)
        if region.code in self.failing:
            raise ScraperError(f"HTTP 503 on {region.url}")
        return self.pages[region.code]


class ListExtractor:
    """The 'markup' handed over by FakeFetcher is already a list of names."""

    def extract(self, markup):
        if not markup:
            raise ExtractionError("No ranking rows found in page markup")
        return list(markup)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def _roundtrip(registry):
    return RegistryDocument.model_validate(json.loads(dump_registry(registry)))


def _without_timestamp(registry):
    data = registry.to_json()
    data.pop("updated_at")
    return data


# --- Timestamps ---


def test_utc_timestamp_format():
    assert utc_timestamp(NOW) == "2024-05-01T12:30:00.000Z"


# --- Cleanup ---


def test_cleanup_keeps_version_and_refreshes_timestamp(messy_document):
    registry = cleanup_registry(messy_document, now=NOW)
    assert registry.version == 3
    assert registry.updated_at == "2024-05-01T12:30:00.000Z"


def test_cleanup_output_shape(messy_document):
    data = cleanup_registry(messy_document, now=NOW).to_json()

    assert data["teams"][1] == {"logo": "logos/fnatic.png", "names": ["Fnatic", "FNATIC"]}
    assert data["regions"]["EU"] == [
        {"slug": "fnatic", "names": ["Fnatic"], "logo": "logos/fnatic.png"},
        {"slug": "g2-esports", "names": ["G2"], "logo": "logos/g2-esports.png"},
    ]
    assert data["regions"]["KR"] == [
        {"slug": "gen-g", "names": ["Gen.G"], "logo": "logos/gen-g.png"},
        {"slug": "geng", "names": ["GenG"], "logo": "logos/geng.png"},
    ]


def test_cleanup_is_idempotent(messy_document):
    first = cleanup_registry(messy_document, now=NOW)
    second = cleanup_registry(_roundtrip(first), now=datetime(2025, 1, 1, tzinfo=timezone.utc))

    assert _without_timestamp(second) == _without_timestamp(first)


def test_cleanup_logo_slug_lockstep(messy_document):
    registry = cleanup_registry(messy_document, now=NOW)
    for team in registry.to_json()["teams"]:
        slug = team["logo"][len("logos/"):-len(".png")]
        assert team["logo"] == f"logos/{slug}.png"
    for record in registry.teams:
        assert record.logo == f"logos/{record.slug}.png"


def test_cleanup_tolerates_malformed_optional_fields():
    document = RegistryDocument.model_validate(
        {"version": "two", "teams": "nope", "regions": ["EU"]}
    )
    registry = cleanup_registry(document, now=NOW)
    assert registry.version == 1
    assert registry.teams == []
    assert registry.regions == {}


# --- Expand ---


@pytest.mark.asyncio
async def test_expand_merges_new_teams_and_builds_regions():
    document = RegistryDocument.model_validate(
        {
            "version": 2,
            "teams": [{"logo": "logos/fnatic.png", "names": ["Fnatic"]}],
            "regions": {},
        }
    )
    fetcher = FakeFetcher(
        {
            "EU": ["1 FNATIC", "2 Team Heretics", "3 Team Heretics", "4 Karmine Corp"],
            "KR": ["1 Gen.G", "2 GenG", "3 T1"],
        }
    )

    result = await expand_registry(
        document, [EU, KR], fetcher, ListExtractor(), now=NOW, sleep=RecordingSleep()
    )
    registry = result.registry

    assert result.refreshed == ["EU", "KR"]
    assert result.failed == []
    assert [t.slug for t in registry.teams] == ["fnatic", "gen-g", "heretics", "karmine-corp", "t1"]
    assert registry.teams[0].names == ["Fnatic", "FNATIC"]
    assert [e.slug for e in registry.regions["EU"]] == ["fnatic", "heretics", "karmine-corp"]
    assert registry.regions["EU"][0].names == ["Fnatic", "FNATIC"]
    assert [e.slug for e in registry.regions["KR"]] == ["gen-g", "t1"]
    assert registry.version == 2


@pytest.mark.asyncio
async def test_expand_truncates_to_top_n():
    fetcher = FakeFetcher({"EU": [f"{i + 1}. Squad {i}" for i in range(40)]})
    result = await expand_registry(
        RegistryDocument(), [EU], fetcher, ListExtractor(), top_n=30, sleep=RecordingSleep()
    )
    assert len(result.registry.regions["EU"]) == 30
    assert result.registry.regions["EU"][0].names == ["Squad 0"]
    assert result.registry.regions["EU"][-1].names == ["Squad 29"]


@pytest.mark.asyncio
async def test_expand_failed_region_keeps_previous_data():
    previous_kr = [{"slug": "t1", "names": ["T1"], "logo": "logos/t1.png"}]
    document = RegistryDocument.model_validate(
        {"teams": [{"logo": "logos/t1.png", "names": ["T1"]}], "regions": {"KR": previous_kr}}
    )
    fetcher = FakeFetcher({"EU": ["1 Fnatic"]}, failing={"KR"})

    result = await expand_registry(
        document, [KR, EU], fetcher, ListExtractor(), sleep=RecordingSleep()
    )
    data = result.registry.to_json()

    assert fetcher.calls == ["KR", "EU"]
    assert result.failed == ["KR"]
    assert result.refreshed == ["EU"]
    assert data["regions"]["KR"] == previous_kr
    assert data["regions"]["EU"] == [
        {"slug": "fnatic", "names": ["Fnatic"], "logo": "logos/fnatic.png"}
    ]


@pytest.mark.asyncio
async def test_expand_failed_region_is_written_back_as_read():
    previous_kr = [
        {"slug": "t1", "names": ["3 T1", "T1"], "logo": "logos/3-t1.png", "rank": 3},
        {"slug": "t1", "names": ["T1"], "logo": "logos/t1.png"},
    ]
    document = RegistryDocument.model_validate(
        {"teams": [{"logo": "logos/t1.png", "names": ["T1"]}], "regions": {"KR": previous_kr}}
    )
    fetcher = FakeFetcher({}, failing={"KR"})

    result = await expand_registry(document, [KR], fetcher, ListExtractor(), sleep=RecordingSleep())
    data = json.loads(dump_registry(result.registry))

    assert data["regions"]["KR"] == previous_kr


@pytest.mark.asyncio
async def test_expand_failed_region_without_previous_data_is_empty():
    fetcher = FakeFetcher({"EU": ["1 Fnatic"], "NA": []}, failing={"KR"})

    result = await expand_registry(
        RegistryDocument(), [EU, KR, NA], fetcher, ListExtractor(), sleep=RecordingSleep()
    )

    assert result.registry.regions["KR"] == []
    assert result.registry.regions["NA"] == []
    assert result.failed == ["KR", "NA"]
    assert [t.slug for t in result.registry.teams] == ["fnatic"]


@pytest.mark.asyncio
async def test_expand_sleeps_between_regions_only():
    sleep = RecordingSleep()
    fetcher = FakeFetcher({"EU": ["Fnatic"], "KR": ["T1"], "NA": ["Sentinels"]})

    await expand_registry(
        RegistryDocument(), [EU, KR, NA], fetcher, ListExtractor(), delay_seconds=0.8, sleep=sleep
    )

    assert sleep.delays == [0.8, 0.8]


@pytest.mark.asyncio
async def test_expand_carries_unconfigured_regions_through():
    document = RegistryDocument.model_validate(
        {"regions": {"OCE": [{"slug": "kanga", "names": ["Kanga Esports"], "logo": "logos/kanga.png"}]}}
    )
    fetcher = FakeFetcher({"EU": ["Fnatic"]})

    result = await expand_registry(document, [EU], fetcher, ListExtractor(), sleep=RecordingSleep())

    assert list(result.registry.regions) == ["OCE", "EU"]
    assert result.registry.regions["OCE"][0].names == ["Kanga Esports"]


@pytest.mark.asyncio
async def test_expand_region_entries_reference_teams():
    fetcher = FakeFetcher({"EU": ["1 G2", "2 Fnatic"], "NA": ["1 G2 Esports", "2 100 Thieves"]})

    result = await expand_registry(
        RegistryDocument(), [EU, NA], fetcher, ListExtractor(), sleep=RecordingSleep()
    )
    registry = result.registry
    team_slugs = [t.slug for t in registry.teams]

    assert len(team_slugs) == len(set(team_slugs))
    for entries in registry.regions.values():
        for entry in entries:
            assert team_slugs.count(entry.slug) == 1
    g2 = next(t for t in registry.teams if t.slug == "g2-esports")
    assert g2.names == ["G2", "G2 Esports"]
    assert registry.regions["EU"][0].names == ["G2", "G2 Esports"]
    assert "100-thieves" in team_slugs


@pytest.mark.asyncio
async def test_cleanup_after_expand_is_stable():
    fetcher = FakeFetcher({"EU": ["1 Fnatic", "2 Team Heretics"], "KR": ["1 Gen.G", "2 T1"]})
    expanded = await expand_registry(
        RegistryDocument(), [EU, KR], fetcher, ListExtractor(), now=NOW, sleep=RecordingSleep()
    )

    cleaned = cleanup_registry(_roundtrip(expanded.registry), now=NOW)

    assert _without_timestamp(cleaned) == _without_timestamp(expanded.registry)
