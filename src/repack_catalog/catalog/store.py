"""
JSON catalog store.

The whole catalog lives in one JSON document: an ordered array of
entries, logically unique by identifier. It is always rewritten
wholesale through a temporary file and an atomic rename, so readers
never see a half-written document.
"""

import json
import os
import tempfile
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from repack_catalog.config import get_settings
from repack_catalog.contracts import CatalogEntry
from repack_catalog.logger import get_logger


class StoreError(Exception):
    """Raised when the store file cannot be read or written."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.original_error = original_error


class CatalogStore:
    """
    Reads and writes the catalog document.

    A missing or malformed document loads as an empty catalog;
    only genuine I/O failures raise StoreError.

    Example:
        >>> store = CatalogStore(Path("data/db.json"))
        >>> entries = store.load()
        >>> store.save(entries)
    """

    def __init__(self, path: Path | None = None) -> None:
        """
        Initialize the store.

        Args:
            path: Location of the JSON document (defaults to settings)
        """
        self._path = Path(path) if path is not None else get_settings().store.path
        self._logger = get_logger(__name__, component="store", path=str(self._path))

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def size_bytes(self) -> int | None:
        """Size of the document on disk, or None if it does not exist."""
        try:
            return self._path.stat().st_size
        except FileNotFoundError:
            return None

    def last_modified(self) -> datetime | None:
        """Local-time modification timestamp, or None if there is no store."""
        try:
            mtime = self._path.stat().st_mtime
        except FileNotFoundError:
            return None
        return datetime.fromtimestamp(mtime).astimezone()

    def load(self) -> list[CatalogEntry]:
        """
        Load all entries in stored order.

        Returns:
            list[CatalogEntry]: Entries, empty if no usable store exists

        Raises:
            StoreError: If the file exists but cannot be read
        """
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            self._logger.info("No catalog store found")
            return []
        except OSError as e:
            raise StoreError(
                f"Cannot read catalog store: {e}", path=self._path, original_error=e
            ) from e

        try:
            document = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self._logger.warning("Catalog store is not valid UTF-8 JSON, ignoring it", error=str(e))
            return []

        if not isinstance(document, list):
            self._logger.warning(
                "Catalog store is not an array, ignoring it",
                document_type=type(document).__name__,
            )
            return []

        entries: list[CatalogEntry] = []
        seen: set[str] = set()
        skipped = 0

        for item in document:
            if not isinstance(item, dict):
                skipped += 1
                continue
            try:
                entry = CatalogEntry.model_validate(item)
            except PydanticValidationError:
                skipped += 1
                continue
            if entry.identifier in seen:
                skipped += 1
                continue
            seen.add(entry.identifier)
            entries.append(entry)

        if skipped:
            self._logger.warning("Skipped unusable store records", skipped=skipped)

        self._logger.debug("Loaded catalog", entries=len(entries))
        return entries

    def save(self, entries: list[CatalogEntry]) -> Path:
        """
        Replace the stored catalog with ``entries``.

        Args:
            entries: Complete catalog in the order to persist

        Returns:
            Path: Location written

        Raises:
            StoreError: If the document could not be written
        """
        document = [entry.to_document() for entry in entries]
        tmp_name: str | None = None

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(
                f"Cannot write catalog store: {e}", path=self._path, original_error=e
            ) from e

        self._logger.info("Wrote catalog store", entries=len(entries))
        return self._path
