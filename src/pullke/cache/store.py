"""
File-backed TTL cache for GitHub search results.

One JSON file per key in a single directory. Each file holds the cached
value, the time it was stored and its TTL; validity is re-evaluated on every
read. Expired files stay on disk until removed or cleared.
"""

import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError

from ..config import DEFAULT_PR_TTL_SECONDS, DEFAULT_REPO_TTL_SECONDS, CacheConfig
from ..errors import CacheError
from .keys import CacheKey, KeyFamily

logger = logging.getLogger(__name__)

CACHE_FILE_SUFFIX = ".json"
_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9_-]")

KeyLike = Union[CacheKey, str]


class CacheRecord(BaseModel):
    """Serialized cache entry."""

    data: Any
    timestamp: float
    ttl: float

    def age_seconds(self, now: Optional[float] = None) -> float:
        return (time.time() if now is None else now) - self.timestamp

    def is_valid(self, now: Optional[float] = None) -> bool:
        return self.age_seconds(now) < self.ttl


@dataclass(frozen=True)
class CacheHit:
    data: Any


@dataclass(frozen=True)
class CacheMiss:
    reason: str = "missing"


@dataclass(frozen=True)
class StoreUnavailable:
    error: Exception


CacheLookup = Union[CacheHit, CacheMiss, StoreUnavailable]


@dataclass(frozen=True)
class CacheInfo:
    location: str
    entry_count: int
    total_bytes: int


@dataclass(frozen=True)
class ClearResult:
    removed_count: int
    error_count: int


def sanitize_cache_key(key: str) -> str:
    """Make a key safe for use as a filename stem."""
    return _UNSAFE_KEY_CHARS.sub("_", key)


def key_family(key: KeyLike) -> KeyFamily:
    """Family of ``key``; plain strings are classified by prefix."""
    if isinstance(key, CacheKey):
        return key.family
    if key.startswith(KeyFamily.PULL_REQUESTS.prefix):
        return KeyFamily.PULL_REQUESTS
    return KeyFamily.REPOSITORIES


class CacheStore:
    """Per-key JSON files with a family-specific default TTL."""

    def __init__(
        self,
        cache_dir: Union[str, Path],
        repo_ttl: float = DEFAULT_REPO_TTL_SECONDS,
        pr_ttl: float = DEFAULT_PR_TTL_SECONDS,
    ):
        self.cache_dir = Path(cache_dir)
        self._default_ttls = {
            KeyFamily.REPOSITORIES: float(repo_ttl),
            KeyFamily.PULL_REQUESTS: float(pr_ttl),
        }

    @classmethod
    def from_config(cls, config: CacheConfig) -> "CacheStore":
        return cls(
            Path(config.cache_dir).expanduser(),
            repo_ttl=config.repo_ttl_seconds,
            pr_ttl=config.pr_ttl_seconds,
        )

    def default_ttl_for(self, key: KeyLike) -> float:
        """Default TTL in seconds for the family ``key`` belongs to."""
        return self._default_ttls[key_family(key)]

    def path_for(self, key: KeyLike) -> Path:
        return self.cache_dir / f"{sanitize_cache_key(str(key))}{CACHE_FILE_SUFFIX}"

    def lookup(self, key: KeyLike) -> CacheLookup:
        """Read ``key`` and classify the outcome."""
        path = self.path_for(key)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return CacheMiss("missing")
        except UnicodeDecodeError as e:
            logger.warning(f"Ignoring undecodable cache entry for key '{key}': {e}")
            return CacheMiss("corrupt")
        except OSError as e:
            logger.warning(f"Cache store unavailable reading {path}: {e}")
            return StoreUnavailable(e)

        try:
            record = CacheRecord.model_validate_json(content)
        except ValidationError as e:
            logger.warning(f"Ignoring corrupt cache entry for key '{key}': {e}")
            return CacheMiss("corrupt")

        if not record.is_valid():
            logger.debug(f"Cache entry for '{key}' expired {record.age_seconds():.1f}s after store")
            return CacheMiss("expired")

        return CacheHit(record.data)

    def read(self, key: KeyLike) -> Optional[Any]:
        """Cached value for ``key``, or None when absent, expired or unreadable."""
        result = self.lookup(key)
        if isinstance(result, CacheHit):
            return result.data
        return None

    def is_valid(self, key: KeyLike) -> bool:
        return isinstance(self.lookup(key), CacheHit)

    def write(self, key: KeyLike, value: Any, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key``, replacing any previous entry.

        The entry is written to a temporary file and moved into place, so a
        failed write never leaves a partial entry behind.

        Raises:
            CacheError: if the value cannot be serialized or stored
        """
        effective_ttl = float(ttl) if ttl else self.default_ttl_for(key)
        path = self.path_for(key)

        try:
            payload = CacheRecord(data=value, timestamp=time.time(), ttl=effective_ttl)
            content = payload.model_dump_json(indent=2)
        except (TypeError, ValueError) as e:
            raise CacheError(f"Failed to serialize cache entry for key '{key}'", key=str(key), cause=e) from e

        tmp_name = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.stem}.", suffix=".tmp", dir=str(self.cache_dir)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise CacheError(f"Failed to save cache for key '{key}': {e}", key=str(key), cause=e) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug(f"Cached data for '{key}' (TTL: {effective_ttl:g}s)")

    def remove(self, key: KeyLike) -> bool:
        """Delete the entry for ``key``; True if a file was removed."""
        return self._unlink(self.path_for(key))

    def _unlink(self, path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to remove cache file {path}: {e}")
            return False

    def _entry_files(self):
        return [p for p in self.cache_dir.iterdir() if p.suffix == CACHE_FILE_SUFFIX]

    def clear_all(self) -> ClearResult:
        """Remove every entry, counting failures instead of stopping on them."""
        try:
            files = self._entry_files()
        except FileNotFoundError:
            return ClearResult(removed_count=0, error_count=0)
        except OSError as e:
            logger.error(f"Failed to list cache directory {self.cache_dir}: {e}")
            return ClearResult(removed_count=0, error_count=1)

        removed = 0
        errors = 0
        for path in files:
            if self._unlink(path):
                removed += 1
            else:
                errors += 1

        logger.info(f"Cache cleared: {removed} files removed, {errors} errors")
        return ClearResult(removed_count=removed, error_count=errors)

    def info(self) -> CacheInfo:
        """Location, entry count and total size of the cache directory."""
        try:
            files = self._entry_files()
        except OSError:
            return CacheInfo(location=str(self.cache_dir), entry_count=0, total_bytes=0)

        total_bytes = 0
        for path in files:
            try:
                total_bytes += path.stat().st_size
            except OSError:
                continue

        return CacheInfo(location=str(self.cache_dir), entry_count=len(files), total_bytes=total_bytes)
