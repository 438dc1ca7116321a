"""
Data contracts for raw listings scraped from the repack site.
"""

from pydantic import BaseModel, Field

Identifier = str


class ListingRecord(BaseModel):
    """A single title/link pair found on one listing page."""

    identifier: Identifier = Field(..., min_length=1, description="Stable slug from the URL")
    title: str = Field(..., min_length=1, description="Title as shown on the site")
    source_url: str = Field(..., min_length=1, description="Link to the repack post")


class PageResult(BaseModel):
    """Outcome of fetching one listing page."""

    page: int = Field(..., ge=1)
    listings: list[ListingRecord] = Field(default_factory=list)
    error: str | None = Field(default=None, description="Failure reason, if the fetch failed")

    @property
    def failed(self) -> bool:
        """Check whether the page could not be fetched."""
        return self.error is not None
