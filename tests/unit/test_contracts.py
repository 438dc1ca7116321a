"""Tests for data contracts."""

import pytest
from pydantic import ValidationError

from repack_catalog.contracts import (
    AccessToken,
    CatalogEntry,
    EnrichmentResult,
    IGDBGame,
    ListingRecord,
)


class TestCatalogEntry:
    """Tests for CatalogEntry contract."""

    def test_loads_stored_document_shape(self) -> None:
        entry = CatalogEntry.model_validate(
            {
                "id": "hades",
                "slug": "hades",
                "title": "Hades v1.38290",
                "link": "https://repacks.example/hades/",
                "image": "https://images.example/hades.jpg",
                "year": 2020,
            }
        )

        assert entry.identifier == "hades"
        assert entry.source_url == "https://repacks.example/hades/"
        assert entry.cover_image_url == "https://images.example/hades.jpg"
        assert entry.release_year == 2020
        assert entry.is_enriched is True

    def test_slug_only_documents_are_accepted(self) -> None:
        entry = CatalogEntry.model_validate({"slug": "stray", "title": "Stray"})
        assert entry.identifier == "stray"
        assert entry.slug == "stray"

    def test_identifier_is_required(self) -> None:
        with pytest.raises(ValidationError):
            CatalogEntry.model_validate({"title": "No id"})

    def test_non_integer_year_becomes_null(self) -> None:
        entry = CatalogEntry.model_validate({"id": "a", "title": "A", "year": "2020"})
        assert entry.release_year is None

    def test_blank_image_becomes_null(self) -> None:
        entry = CatalogEntry.model_validate({"id": "a", "title": "A", "image": ""})
        assert entry.cover_image_url is None
        assert entry.is_enriched is False

    def test_year_without_image_counts_as_enriched(self) -> None:
        entry = CatalogEntry(identifier="a", title="A", release_year=2001)
        assert entry.is_enriched is True

    def test_to_document_uses_short_field_names(self) -> None:
        entry = CatalogEntry(
            identifier="stray",
            title="Stray",
            display_title="Stray",
            source_url="https://repacks.example/stray/",
        )

        assert entry.to_document() == {
            "id": "stray",
            "slug": "stray",
            "title": "Stray",
            "displayTitle": "Stray",
            "link": "https://repacks.example/stray/",
            "image": None,
            "year": None,
        }

    def test_refreshed_keeps_enrichment(self) -> None:
        entry = CatalogEntry(
            identifier="hades",
            title="Hades v1.0",
            source_url="https://old.example/hades/",
            cover_image_url="https://images.example/hades.jpg",
            release_year=2020,
        )
        listing = ListingRecord(
            identifier="hades",
            title="Hades v1.38290",
            source_url="https://repacks.example/hades/",
        )

        refreshed = entry.refreshed(listing, display_title="Hades")

        assert refreshed.title == "Hades v1.38290"
        assert refreshed.source_url == "https://repacks.example/hades/"
        assert refreshed.cover_image_url == "https://images.example/hades.jpg"
        assert refreshed.release_year == 2020
        assert entry.title == "Hades v1.0"


class TestEnrichmentResult:
    """Tests for EnrichmentResult contract."""

    def test_empty(self) -> None:
        assert EnrichmentResult.empty().is_empty is True
        assert EnrichmentResult(release_year=1998).is_empty is False


class TestIGDBGame:
    """Tests for IGDB payload contracts."""

    def test_cover_image_id(self) -> None:
        game = IGDBGame.model_validate(
            {"id": 1, "name": "Hades", "cover": {"id": 9, "image_id": "co1abc"}}
        )
        assert game.cover_image_id == "co1abc"

    def test_missing_cover(self) -> None:
        assert IGDBGame.model_validate({"name": "Hades"}).cover_image_id is None


class TestAccessToken:
    """Tests for AccessToken lifecycle."""

    def test_usable_outside_margin(self) -> None:
        token = AccessToken(value="t", expires_at_epoch_ms=200_000)
        assert token.is_usable(100_000) is True

    def test_not_usable_within_margin(self) -> None:
        token = AccessToken(value="t", expires_at_epoch_ms=200_000)
        assert token.is_usable(140_001) is False
        assert token.is_usable(140_000, margin_ms=60_000) is False
