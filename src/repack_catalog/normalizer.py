"""
Title normalization and identifier derivation.

Repack titles carry version tags, edition qualifiers and bracketed
notes that break metadata searches. ``normalize_title`` strips them
to a search- and display-friendly form. It is deterministic, does no
I/O and is idempotent: ``normalize_title(normalize_title(t))`` equals
``normalize_title(t)``.
"""

import re
from urllib.parse import urlparse

# Connector symbols collapse first so that a version or edition word
# glued to a "+" is still preceded by whitespace for the patterns below.
_CONNECTORS = re.compile(r"\s*[+&]\s*")
_VERSION = re.compile(r"\s+v?\d+\.\d+(?:\.\d+){0,2}\b", re.IGNORECASE)
_NOISE = re.compile(r"\s*-?\s*\b(?:fitgirl|repacks?)\b\s*", re.IGNORECASE)
_BRACKETED = re.compile(r"\s*[(\[][^()\[\]]*[)\]]")
_EDITION = re.compile(
    r"\s+(?:edition|complete|goty|deluxe|ultimate|enhanced|definitive|"
    r"remastered|remake|hd|director'?s?\s+cut)\b",
    re.IGNORECASE,
)
_TRAILING_SEPARATORS = re.compile(r"[\s\-–—:,/|]+$")
_WHITESPACE = re.compile(r"\s+")

_MAX_PASSES = 8


def _normalize_once(title: str) -> str:
    cleaned = _CONNECTORS.sub(" ", title)
    cleaned = _VERSION.sub("", cleaned)
    cleaned = _NOISE.sub(" ", cleaned)
    cleaned = _BRACKETED.sub("", cleaned)
    cleaned = _EDITION.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return _TRAILING_SEPARATORS.sub("", cleaned)


def normalize_title(title: str) -> str:
    """
    Strip repack noise from a listing title.

    Removes version tokens (``v1.2.3``), repack/brand words, bracketed
    or parenthesised qualifiers, edition adjectives (deluxe, remastered,
    director's cut, ...), and collapses ``+``/``&`` and whitespace.

    Args:
        title: Raw title as scraped

    Returns:
        str: Cleaned title (may be empty for pure-noise input)

    Example:
        >>> normalize_title("Hades - v1.38290 [FitGirl Repack]")
        'Hades'
    """
    cleaned = title
    # Removing one token can expose another (e.g. "Game (x) Edition"),
    # so passes repeat until nothing changes.
    for _ in range(_MAX_PASSES):
        updated = _normalize_once(cleaned)
        if updated == cleaned:
            break
        cleaned = updated
    return cleaned


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated slug of a title."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug.strip("-")


def derive_identifier(source_url: str, title: str) -> str:
    """
    Derive the stable identifier of a listing.

    Uses the last non-empty path segment of the listing URL, falling
    back to a slug of the title when the URL has no path.

    Args:
        source_url: Link to the repack post
        title: Listing title

    Returns:
        str: Identifier (empty only if both inputs are unusable)
    """
    path = urlparse(source_url).path
    segments = [segment for segment in path.split("/") if segment]
    if segments:
        return segments[-1]
    return slugify(title)
