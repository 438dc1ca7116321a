"""Tests for the JSON catalog store."""

import json
from pathlib import Path

import pytest

from repack_catalog.catalog import CatalogStore, StoreError
from repack_catalog.contracts import CatalogEntry


def _entry(identifier: str, **kwargs) -> CatalogEntry:
    return CatalogEntry(
        identifier=identifier,
        title=kwargs.pop("title", identifier.title()),
        source_url=f"https://repacks.example/{identifier}/",
        **kwargs,
    )


class TestLoad:
    """Tests for CatalogStore.load."""

    def test_missing_file_is_empty_catalog(self, tmp_path: Path) -> None:
        store = CatalogStore(tmp_path / "db.json")

        assert store.load() == []
        assert store.exists() is False
        assert store.last_modified() is None
        assert store.size_bytes() is None

    def test_malformed_json_is_empty_catalog(self, tmp_path: Path) -> None:
        path = tmp_path / "db.json"
        path.write_text("[{not json", encoding="utf-8")

        assert CatalogStore(path).load() == []

    def test_invalid_utf8_is_empty_catalog(self, tmp_path: Path) -> None:
        path = tmp_path / "db.json"
        path.write_bytes(b"\xff\xfe garbage")

        assert CatalogStore(path).load() == []

    def test_non_array_document_is_empty_catalog(self, tmp_path: Path) -> None:
        path = tmp_path / "db.json"
        path.write_text(json.dumps({"games": []}), encoding="utf-8")

        assert CatalogStore(path).load() == []

    def test_unusable_records_are_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "db.json"
        path.write_text(
            json.dumps(
                [
                    {"id": "a", "title": "A", "link": "https://repacks.example/a/"},
                    "not an object",
                    {"title": "no identifier", "link": "https://repacks.example/x/"},
                    {"id": "a", "title": "A again", "link": "https://repacks.example/a/"},
                    {"id": "b", "title": "B", "link": "https://repacks.example/b/", "year": 2019},
                ]
            ),
            encoding="utf-8",
        )

        entries = CatalogStore(path).load()

        assert [e.identifier for e in entries] == ["a", "b"]
        assert entries[0].title == "A"
        assert entries[1].release_year == 2019

    def test_unreadable_store_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "db.json"
        path.mkdir()

        with pytest.raises(StoreError):
            CatalogStore(path).load()


class TestSave:
    """Tests for CatalogStore.save."""

    def test_save_then_load_preserves_order_and_fields(self, tmp_path: Path) -> None:
        store = CatalogStore(tmp_path / "nested" / "db.json")
        entries = [
            _entry("zeta", cover_image_url="https://img.example/z.jpg", release_year=2021),
            _entry("alpha", display_title="Alpha"),
        ]

        store.save(entries)
        loaded = store.load()

        assert loaded == entries
        assert store.exists() is True
        assert store.size_bytes() and store.size_bytes() > 0

    def test_document_uses_stored_field_names(self, tmp_path: Path) -> None:
        path = tmp_path / "db.json"
        CatalogStore(path).save([_entry("hades", cover_image_url="https://img.example/h.jpg")])

        document = json.loads(path.read_text(encoding="utf-8"))

        assert document == [
            {
                "id": "hades",
                "slug": "hades",
                "title": "Hades",
                "displayTitle": None,
                "link": "https://repacks.example/hades/",
                "image": "https://img.example/h.jpg",
                "year": None,
            }
        ]

    def test_save_replaces_whole_document(self, tmp_path: Path) -> None:
        store = CatalogStore(tmp_path / "db.json")
        store.save([_entry("a"), _entry("b")])
        store.save([_entry("c")])

        assert [e.identifier for e in store.load()] == ["c"]

    def test_non_ascii_titles_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "db.json"
        CatalogStore(path).save([_entry("pokemon", title="Pokémon Légendes")])

        assert "Pokémon Légendes" in path.read_text(encoding="utf-8")

    def test_no_temporary_files_left_behind(self, tmp_path: Path) -> None:
        store = CatalogStore(tmp_path / "db.json")
        store.save([_entry("a")])

        assert sorted(p.name for p in tmp_path.iterdir()) == ["db.json"]

    def test_write_failure_raises_and_cleans_up(self, tmp_path: Path) -> None:
        path = tmp_path / "db.json"
        path.mkdir()  # a directory cannot be replaced by the document

        with pytest.raises(StoreError) as exc_info:
            CatalogStore(path).save([_entry("a")])

        assert exc_info.value.path == path
        assert sorted(p.name for p in tmp_path.iterdir()) == ["db.json"]
