"""
tests/test_registry_file.py

Purpose:
    Reading the registry permissively and writing it back in full.
"""

import json

import pytest

from team_registry.models.registry import Registry
from team_registry.models.team import RegionEntry, TeamRecord
from team_registry.storage.registry_file import (
    RegistryFileError,
    load_registry_document,
    write_registry,
)


def test_missing_file_gives_empty_registry(tmp_path):
    document = load_registry_document(tmp_path / "teamdb" / "teams.json")
    assert document.version == 1
    assert document.teams == []
    assert document.regions == {}


def test_invalid_json_is_fatal(tmp_path):
    path = tmp_path / "teams.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(RegistryFileError):
        load_registry_document(path)


def test_non_object_top_level_is_fatal(tmp_path):
    path = tmp_path / "teams.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(RegistryFileError):
        load_registry_document(path)


def test_malformed_fields_are_tolerated(tmp_path):
    path = tmp_path / "teams.json"
    path.write_text(
        json.dumps(
            {
                "version": 4,
                "teams": [
                    {"logo": "logos/fnatic.png", "names": ["Fnatic", 7, None]},
                    "garbage",
                    {"names": "Sentinels"},
                ],
                "regions": {"EU": [{"slug": "fnatic"}, 3], "NA": "broken"},
            }
        ),
        encoding="utf-8",
    )

    document = load_registry_document(path)

    assert document.version == 4
    assert [t.names for t in document.teams] == [["Fnatic"], []]
    assert document.teams[1].logo == ""
    assert list(document.regions) == ["EU"]
    assert document.regions["EU"][0].slug == "fnatic"


def test_write_registry_pretty_prints_with_trailing_newline(tmp_path):
    path = tmp_path / "nested" / "teams.json"
    registry = Registry(
        version=2,
        updated_at="2024-05-01T12:30:00.000Z",
        teams=[TeamRecord(slug="leviatan", names=["Leviatán Esports"])],
        regions={"LAS": [RegionEntry(slug="leviatan", names=["Leviatán Esports"])]},
    )

    write_registry(path, registry)
    text = path.read_text(encoding="utf-8")

    assert text.endswith("}\n")
    assert '  "version": 2,' in text
    assert "Leviatán Esports" in text
    assert json.loads(text) == {
        "version": 2,
        "updated_at": "2024-05-01T12:30:00.000Z",
        "teams": [{"logo": "logos/leviatan.png", "names": ["Leviatán Esports"]}],
        "regions": {
            "LAS": [
                {"slug": "leviatan", "names": ["Leviatán Esports"], "logo": "logos/leviatan.png"}
            ]
        },
    }
    assert [p.name for p in path.parent.iterdir()] == ["teams.json"]


def test_write_then_load_roundtrip(tmp_path):
    path = tmp_path / "teams.json"
    registry = Registry(updated_at="2024-05-01T12:30:00.000Z", teams=[TeamRecord(slug="t1", names=["T1"])])

    write_registry(path, registry)
    document = load_registry_document(path)

    assert document.updated_at == "2024-05-01T12:30:00.000Z"
    assert document.teams[0].logo == "logos/t1.png"
    assert document.teams[0].names == ["T1"]
