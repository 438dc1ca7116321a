"""
Data contracts for persisted catalog entries.

The on-disk document uses short field names (``id``, ``slug``,
``link``, ``image``, ``year``) shared with the front end; the models
expose descriptive attribute names and convert at the boundary.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from repack_catalog.contracts.listing import Identifier, ListingRecord


class EnrichmentResult(BaseModel):
    """Cover art and release year resolved for one title."""

    model_config = ConfigDict(frozen=True)

    cover_image_url: str | None = None
    release_year: int | None = None

    @property
    def is_empty(self) -> bool:
        """Check whether nothing was resolved."""
        return self.cover_image_url is None and self.release_year is None

    @classmethod
    def empty(cls) -> "EnrichmentResult":
        """Result used for every failure mode."""
        return cls()


class CatalogEntry(BaseModel):
    """
    Merged, persisted record for one game.

    Enrichment fields are independent: a title may carry a
    release year without cover art and vice versa.
    """

    model_config = ConfigDict(populate_by_name=True)

    identifier: Identifier = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("identifier", "id", "slug"),
    )
    title: str
    display_title: str | None = Field(
        default=None,
        validation_alias=AliasChoices("display_title", "displayTitle"),
    )
    source_url: str = Field(
        default="",
        validation_alias=AliasChoices("source_url", "link", "sourceUrl"),
    )
    cover_image_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("cover_image_url", "image", "coverImageUrl"),
    )
    release_year: int | None = Field(
        default=None,
        validation_alias=AliasChoices("release_year", "year", "releaseYear"),
    )

    @field_validator("cover_image_url", mode="before")
    @classmethod
    def blank_image_to_none(cls, v: Any) -> Any:
        """Empty or non-string image values are stored as null."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("release_year", mode="before")
    @classmethod
    def non_integer_year_to_none(cls, v: Any) -> Any:
        """Only integral years survive a load; anything else becomes null."""
        if isinstance(v, bool) or not isinstance(v, int):
            return None
        return v

    @property
    def slug(self) -> str:
        """Slug is the identifier under another name."""
        return self.identifier

    @property
    def is_enriched(self) -> bool:
        """Check whether either enrichment field is resolved."""
        return self.cover_image_url is not None or self.release_year is not None

    @classmethod
    def from_listing(
        cls,
        listing: ListingRecord,
        enrichment: EnrichmentResult,
        *,
        display_title: str | None = None,
    ) -> "CatalogEntry":
        """Build an entry from a fresh listing and its lookup result."""
        return cls(
            identifier=listing.identifier,
            title=listing.title,
            display_title=display_title,
            source_url=listing.source_url,
            cover_image_url=enrichment.cover_image_url,
            release_year=enrichment.release_year,
        )

    def refreshed(self, listing: ListingRecord, *, display_title: str | None = None) -> "CatalogEntry":
        """
        Take title and link from a fresh listing, keep enrichment as is.

        The listing site is authoritative for title and link; the
        metadata service for image and year.
        """
        return self.model_copy(
            update={
                "title": listing.title,
                "source_url": listing.source_url,
                "display_title": display_title,
            }
        )

    def to_document(self) -> dict[str, Any]:
        """Convert to the JSON shape stored on disk and served to clients."""
        return {
            "id": self.identifier,
            "slug": self.identifier,
            "title": self.title,
            "displayTitle": self.display_title,
            "link": self.source_url,
            "image": self.cover_image_url,
            "year": self.release_year,
        }
