"""
Data contracts for the IGDB API and its Twitch OAuth token endpoint.

Only the fields requested by the catalog queries are modelled.
"""

from pydantic import BaseModel, ConfigDict, Field


class IGDBCover(BaseModel):
    """Cover reference attached to a game."""

    model_config = ConfigDict(extra="ignore")

    image_id: str | None = None


class IGDBGame(BaseModel):
    """Candidate returned by a games query."""

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    name: str = ""
    first_release_date: int | None = Field(
        default=None,
        description="Unix timestamp in seconds",
    )
    cover: IGDBCover | None = None

    @property
    def cover_image_id(self) -> str | None:
        """Image id of the cover, if the candidate has cover art."""
        if self.cover is None or not self.cover.image_id:
            return None
        return self.cover.image_id


class TokenResponse(BaseModel):
    """Client-credentials grant response."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)
    expires_in: int = Field(default=0, ge=0, description="Lifetime in seconds")
    token_type: str = "bearer"


class AccessToken(BaseModel):
    """Bearer token with its absolute expiry."""

    model_config = ConfigDict(frozen=True)

    value: str
    expires_at_epoch_ms: int

    def is_usable(self, now_epoch_ms: int, *, margin_ms: int = 60_000) -> bool:
        """Check that more than the safety margin remains before expiry."""
        return self.expires_at_epoch_ms - now_epoch_ms > margin_ms
