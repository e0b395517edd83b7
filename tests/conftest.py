"""
tests/conftest.py

Purpose:
    Shared pytest bootstrap: repo root on sys.path plus registry fixtures.
"""

import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from team_registry.models.registry import RegistryDocument


@pytest.fixture
def messy_document() -> RegistryDocument:
    """A registry as an old scrape left it: rank prefixes, dupes, stale logos."""
    return RegistryDocument.model_validate(
        {
            "version": 3,
            "updated_at": "2024-01-01T00:00:00.000Z",
            "teams": [
                {"logo": "logos/1-fnatic.png", "names": ["1 Fnatic"]},
                {"logo": "logos/12-leviatan.png", "names": ["12. Leviatán Esports"]},
                {"logo": "logos/fnatic.png", "names": ["FNATIC", "Fnatic"]},
                {"logo": "logos/g2.png", "names": ["3 G2 Esports"]},
                {"logo": "logos/100-thieves.png", "names": ["100 Thieves"]},
                {"logo": "logos/sentinels.png", "names": []},
                {"logo": "", "names": ["  "]},
            ],
            "regions": {
                "EU": [
                    {"slug": "fnatic", "names": ["1 Fnatic"], "logo": "logos/1-fnatic.png"},
                    {"slug": "g2", "names": ["2 G2"], "logo": "logos/g2.png"},
                    {"slug": "fnatic", "names": ["3 FNATIC"], "logo": "logos/fnatic.png"},
                ],
                "KR": [
                    {"slug": "gen-g", "names": ["Gen.G"], "logo": "logos/gen-g.png"},
                    {"slug": "geng", "names": ["GenG"], "logo": "logos/geng.png"},
                ],
            },
        }
    )
