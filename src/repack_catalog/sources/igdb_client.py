"""
IGDB metadata enrichment client.

Resolves a raw listing title to cover art and release year. Owns two
explicitly constructed caches: the Twitch bearer token (refreshed
when it nears expiry) and per-title results (kept for the lifetime
of the client, never persisted).

``resolve()`` never raises: missing credentials, auth failures,
network errors and malformed payloads all degrade to an empty result.
"""

import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from repack_catalog.config import IGDBConfig, RetryConfig, get_settings
from repack_catalog.contracts import AccessToken, EnrichmentResult, IGDBGame, TokenResponse
from repack_catalog.normalizer import normalize_title
from repack_catalog.sources.base import BaseClient, SourceError

QUERY_FIELDS = "name, first_release_date, cover.image_id"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class TokenCache:
    """Holds the current bearer token and decides when it is reusable."""

    def __init__(
        self,
        *,
        margin_seconds: int = 60,
        clock_ms: Callable[[], int] = _epoch_ms,
    ) -> None:
        self._token: AccessToken | None = None
        self._margin_ms = margin_seconds * 1000
        self._clock_ms = clock_ms

    def now_ms(self) -> int:
        """Current time in epoch milliseconds."""
        return self._clock_ms()

    def get(self) -> str | None:
        """Return the cached token if it is not about to expire."""
        if self._token is None:
            return None
        if not self._token.is_usable(self._clock_ms(), margin_ms=self._margin_ms):
            return None
        return self._token.value

    def store(self, value: str, expires_in_seconds: int) -> AccessToken:
        """Remember a freshly issued token."""
        self._token = AccessToken(
            value=value,
            expires_at_epoch_ms=self._clock_ms() + expires_in_seconds * 1000,
        )
        return self._token

    def clear(self) -> None:
        """Forget the token, forcing a new exchange."""
        self._token = None


class TitleResultCache:
    """Per-title enrichment results keyed by the lowercased raw title."""

    def __init__(self) -> None:
        self._results: dict[str, EnrichmentResult] = {}

    @staticmethod
    def key(raw_title: str) -> str:
        """Cache key for a raw title."""
        return raw_title.lower()

    def get(self, raw_title: str) -> EnrichmentResult | None:
        return self._results.get(self.key(raw_title))

    def put(self, raw_title: str, result: EnrichmentResult) -> None:
        self._results[self.key(raw_title)] = result

    def __contains__(self, raw_title: object) -> bool:
        return isinstance(raw_title, str) and self.key(raw_title) in self._results

    def __len__(self) -> int:
        return len(self._results)


def escape_query_string(value: str) -> str:
    """Escape a value for use inside an Apicalypse string literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_queries(search_title: str, limit: int) -> list[str]:
    """
    Query strategies, tried in order.

    An exact phrase search first, then a fuzzy "name contains" filter.
    """
    safe = escape_query_string(search_title)
    return [
        f'search "{safe}"; fields {QUERY_FIELDS}; limit {limit};',
        f'fields {QUERY_FIELDS}; where name ~ *"{safe}"*; limit {limit};',
    ]


def select_match(candidates: list[IGDBGame], search_title: str) -> IGDBGame | None:
    """
    Pick the best candidate for a normalized search title.

    Preference order: a candidate whose normalized name contains, or
    is contained in, the search title; the first candidate with cover
    art; the first candidate at all.
    """
    if not candidates:
        return None

    wanted = search_title.lower()
    if wanted:
        for candidate in candidates:
            name = normalize_title(candidate.name).lower()
            if name and (name in wanted or wanted in name):
                return candidate

    for candidate in candidates:
        if candidate.cover_image_id:
            return candidate

    return candidates[0]


def release_year_from_timestamp(timestamp: Any) -> int | None:
    """Calendar year (UTC) of a Unix-seconds timestamp; None when unusable."""
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)) or not timestamp:
        return None
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).year
    except (OverflowError, OSError, ValueError):
        return None


class MetadataEnrichmentClient(BaseClient):
    """
    Client for IGDB cover art and release year lookups.

    Example:
        >>> async with MetadataEnrichmentClient() as igdb:
        ...     result = await igdb.resolve("Hades v1.38290 [FitGirl Repack]")
        ...     print(result.cover_image_url, result.release_year)
    """

    component = "enrichment"

    def __init__(
        self,
        config: IGDBConfig | None = None,
        *,
        token_cache: TokenCache | None = None,
        result_cache: TitleResultCache | None = None,
        retry_config: RetryConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the enrichment client.

        Args:
            config: IGDB configuration (uses global settings if None)
            token_cache: Shared token cache (creates one if None)
            result_cache: Shared per-title cache (creates one if None)
            retry_config: Custom retry configuration
            http_client: Pre-built httpx client (tests)
        """
        self._config = config or get_settings().igdb
        super().__init__(
            retry_config=retry_config,
            timeout=self._config.timeout_seconds,
            http_client=http_client,
        )
        self._tokens = token_cache or TokenCache(
            margin_seconds=self._config.token_safety_margin_seconds
        )
        self._results = result_cache or TitleResultCache()

        if not self.enabled:
            self._logger.warning("IGDB credentials not configured, enrichment disabled")

    @property
    def source_name(self) -> str:
        """Return source identifier."""
        return "igdb"

    @property
    def enabled(self) -> bool:
        """Check whether lookups can be made at all."""
        return self._config.has_credentials

    @property
    def result_cache(self) -> TitleResultCache:
        return self._results

    def is_cached(self, raw_title: str) -> bool:
        """Check whether a lookup for this title would be served from cache."""
        return raw_title in self._results

    def _credentials(self) -> tuple[str, str] | None:
        """Client id and secret, or None unless both are configured."""
        client_id, client_secret = self._config.client_id, self._config.client_secret
        if client_id is None or client_secret is None:
            return None
        return client_id.get_secret_value(), client_secret.get_secret_value()

    async def get_access_token(self) -> str | None:
        """
        Return a bearer token, exchanging credentials when needed.

        Returns:
            str | None: Token, or None when credentials are missing or
            the exchange failed
        """
        credentials = self._credentials()
        if credentials is None:
            return None
        client_id, client_secret = credentials

        cached = self._tokens.get()
        if cached is not None:
            return cached

        try:
            response = await self._make_request(
                "POST",
                self._config.token_url,
                params={
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "grant_type": "client_credentials",
                },
            )
            payload = TokenResponse.model_validate(response.json())
        except (SourceError, httpx.HTTPError, ValueError) as e:
            # pydantic's ValidationError and JSON decode errors are ValueErrors
            self._logger.error("Token exchange failed", error=str(e))
            return None

        token = self._tokens.store(payload.access_token, payload.expires_in)
        self._logger.info("Obtained access token", expires_at_epoch_ms=token.expires_at_epoch_ms)
        return token.value

    async def _query(self, query: str, token: str) -> list[IGDBGame]:
        """Run one query; failures and malformed payloads yield no candidates."""
        credentials = self._credentials()
        if credentials is None:
            return []

        try:
            response = await self._make_request(
                "POST",
                self._config.api_url,
                content=query.encode("utf-8"),
                headers={
                    "Client-ID": credentials[0],
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "text/plain",
                    "Accept": "application/json",
                },
            )
            payload = response.json()
        except (SourceError, httpx.HTTPError, ValueError) as e:
            if isinstance(e, SourceError) and e.status_code == 401:
                self._tokens.clear()
            self._logger.warning("Query failed", error=str(e))
            return []

        if not isinstance(payload, list):
            self._logger.warning("Unexpected payload shape", payload_type=type(payload).__name__)
            return []

        candidates: list[IGDBGame] = []
        for item in payload:
            try:
                candidates.append(IGDBGame.model_validate(item))
            except PydanticValidationError:
                continue
        return candidates

    def _project(self, game: IGDBGame) -> EnrichmentResult:
        image_id = game.cover_image_id
        image = self._config.image_url_template.format(image_id=image_id) if image_id else None
        return EnrichmentResult(
            cover_image_url=image,
            release_year=release_year_from_timestamp(game.first_release_date),
        )

    async def resolve(self, raw_title: str) -> EnrichmentResult:
        """
        Resolve cover art and release year for a raw listing title.

        Args:
            raw_title: Title as scraped from the listing

        Returns:
            EnrichmentResult: Resolved fields; empty on any failure
        """
        if not self.enabled:
            return EnrichmentResult.empty()

        cached = self._results.get(raw_title)
        if cached is not None:
            return cached

        try:
            return await self._resolve_uncached(raw_title)
        except Exception as e:  # noqa: BLE001
            self._logger.exception("Unexpected enrichment failure", title=raw_title, error=str(e))
            return EnrichmentResult.empty()

    async def _resolve_uncached(self, raw_title: str) -> EnrichmentResult:
        search_title = normalize_title(raw_title)
        if not search_title:
            result = EnrichmentResult.empty()
            self._results.put(raw_title, result)
            return result

        token = await self.get_access_token()
        if token is None:
            # Not cached: the next call may get a token.
            return EnrichmentResult.empty()

        match: IGDBGame | None = None
        for query in build_queries(search_title, self._config.search_limit):
            candidates = await self._query(query, token)
            if candidates:
                match = select_match(candidates, search_title)
                break

        result = self._project(match) if match is not None else EnrichmentResult.empty()
        self._results.put(raw_title, result)

        self._logger.debug(
            "Resolved title",
            title=raw_title,
            search_title=search_title,
            matched=match.name if match else None,
            image=result.cover_image_url is not None,
            year=result.release_year,
        )
        return result
