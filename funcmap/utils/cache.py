"""On-disk cache of analysis results.

Results are keyed by a hash of the grammar name and the source text, so a
unit is re-analyzed only when its content changes. Stored as a single
MessagePack file.
"""

import hashlib
from pathlib import Path

import msgpack
from pydantic import ValidationError

from funcmap.logging import logger
from funcmap.models.function import FunctionRecord

# Analysis cache version - bump when the record format changes
ANALYSIS_CACHE_VERSION = "1.0"

CACHE_FILENAME = "analysis_cache.msgpack"


def content_key(content: str, language: str) -> str:
    """Compute the cache key for a source unit.

    Args:
        content: The unit's source text.
        language: Grammar the unit is parsed with.

    Returns:
        Hex digest of the SHA256 hash.
    """
    digest = hashlib.sha256()
    digest.update(language.encode())
    digest.update(b"\0")
    digest.update(content.encode("utf-8", errors="surrogatepass"))
    return digest.hexdigest()


class AnalysisCache:
    """Cache of per-unit function inventories stored under a directory."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)
        self.entries: dict[str, list[dict]] = {}
        self._dirty = False

    @property
    def path(self) -> Path:
        return self.directory / CACHE_FILENAME

    def __len__(self) -> int:
        return len(self.entries)

    def load(self) -> "AnalysisCache":
        """Load entries from disk, ignoring missing, stale or corrupt files."""
        if not self.path.exists():
            return self

        try:
            with self.path.open("rb") as f:
                data = msgpack.unpack(f, raw=False)

            if data.get("version") != ANALYSIS_CACHE_VERSION:
                logger.info("  Analysis cache version mismatch, ignoring cache")
                return self

            self.entries = dict(data["entries"])
            logger.info("  Loaded analysis cache with %d entries", len(self.entries))
        except (msgpack.UnpackException, msgpack.ExtraData, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("  Failed to load analysis cache: %s", e)
            self.entries = {}

        return self

    def get(self, content: str, language: str) -> list[FunctionRecord] | None:
        """Return cached records for a unit, or None on a miss."""
        entry = self.entries.get(content_key(content, language))
        if entry is None:
            return None
        try:
            return [FunctionRecord.model_validate(record) for record in entry]
        except (TypeError, ValidationError) as e:
            logger.warning("  Discarding invalid analysis cache entry: %s", e)
            return None

    def put(self, content: str, language: str, functions: list[FunctionRecord]) -> None:
        """Store the records for a unit."""
        self.entries[content_key(content, language)] = [
            record.model_dump(mode="json", by_alias=True) for record in functions
        ]
        self._dirty = True

    def save(self) -> None:
        """Write the cache to disk if anything changed."""
        if not self._dirty:
            return

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with self.path.open("wb") as f:
                msgpack.pack({"version": ANALYSIS_CACHE_VERSION, "entries": self.entries}, f)
            self._dirty = False
            logger.info("  Saved analysis cache with %d entries (msgpack)", len(self.entries))
        except OSError as e:
            logger.warning("  Failed to save analysis cache: %s", e)
