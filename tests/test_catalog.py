from __future__ import annotations

import json
from pathlib import Path

import pytest

from adapters.catalog_loader import load_catalog
from core.catalog import (
    build_catalog,
    entries_by_category,
    entries_by_keywords,
    get_entry_by_id,
    list_categories,
)

CATALOG_PATH = Path(__file__).resolve().parents[1] / "src" / "catalog.json"


def test_bundled_catalog_has_ten_unique_entries() -> None:
    catalog = load_catalog(str(CATALOG_PATH))

    assert len(catalog) == 10
    assert len({entry.id for entry in catalog}) == 10
    assert all(entry.summary for entry in catalog)
    assert all(entry.links for entry in catalog)


def test_build_catalog_normalizes_fields() -> None:
    catalog = build_catalog(
        [
            {
                "id": 7,
                "title": "Tea Club",
                "description": "Loose leaf tea every month.",
                "category": "Food",
                "keywords": ["Tea", "Loose Leaf", ""],
                "links": [{"text": "Join", "url": "tea.example/join"}, {"text": "broken"}],
            }
        ]
    )

    entry = catalog[0]
    assert entry.summary == "Loose leaf tea every month."
    assert entry.category == "food"
    assert entry.keywords == ("tea", "loose leaf")
    assert entry.company is None
    assert [link.url for link in entry.links] == ["tea.example/join"]


def test_build_catalog_rejects_duplicate_and_invalid_ids() -> None:
    with pytest.raises(ValueError):
        build_catalog(
            [
                {"id": 1, "title": "A", "category": "x"},
                {"id": 1, "title": "B", "category": "y"},
            ]
        )
    with pytest.raises(ValueError):
        build_catalog([{"id": 0, "title": "A", "category": "x"}])
    with pytest.raises(ValueError):
        build_catalog([{"id": 3, "category": "x"}])


def test_lookup_helpers() -> None:
    catalog = load_catalog(str(CATALOG_PATH))

    dell = get_entry_by_id(catalog, 2)
    assert dell is not None and dell.company is not None
    assert dell.company.name == "Dell"
    assert get_entry_by_id(catalog, 999) is None

    assert [entry.id for entry in entries_by_category(catalog, "Gaming")] == [2]
    assert {entry.id for entry in entries_by_keywords(catalog, ["lapt"])} == {1, 2}
    assert entries_by_keywords(catalog, []) == []

    categories = list_categories(catalog)
    assert categories[0] == "technology"
    assert len(categories) == len(set(categories))


def test_load_catalog_accepts_plain_list(tmp_path: Path) -> None:
    path = tmp_path / "ads.json"
    path.write_text(json.dumps([{"id": 1, "title": "A", "category": "x"}]), encoding="utf-8")

    catalog = load_catalog(str(path))

    assert [entry.id for entry in catalog] == [1]


def test_load_catalog_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_catalog(str(tmp_path / "nope.json"))
