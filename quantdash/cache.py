"""
Caching layer for API payloads.

This module provides a disk-based cache that stores decoded API responses
by query hash, so repeated dashboard builds inside the refresh interval do
not hit the upstream APIs again.
"""

import hashlib
import json
import pickle
import time
from pathlib import Path
from typing import Optional, Any
from quantdash.errors import CacheError

# Upstream dashboards refresh every five minutes
DEFAULT_MAX_AGE_SECONDS = 300


class DataCache:
    """
    A disk-based cache for fetched payloads.

    Entries are pickled under the md5 of their sorted query parameters and
    expire max_age_seconds after they were written (None keeps them until
    clear() is called).

    Representation Invariants:
        - cache_dir exists and is a directory
        - cache files are named by their hash
        - max_age_seconds is None or > 0
    """

    def __init__(self, cache_dir: str = ".cache", max_age_seconds: Optional[float] = DEFAULT_MAX_AGE_SECONDS):
        """
        Initialize the cache.

        Preconditions:
            - cache_dir is a valid path (will be created if it doesn't exist)

        Postconditions:
            - cache_dir exists as a directory
        """
        if max_age_seconds is not None and max_age_seconds <= 0:
            raise ValueError("max_age_seconds must be positive or None")
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.max_age_seconds = max_age_seconds

    def _compute_hash(self, query_params: dict) -> str:
        # Sort keys for consistent hashing
        sorted_params = json.dumps(query_params, sort_keys=True, default=str)
        return hashlib.md5(sorted_params.encode()).hexdigest()

    def _path(self, query_params: dict) -> Path:
        return self.cache_dir / f"{self._compute_hash(query_params)}.pkl"

    def _is_fresh(self, cache_file: Path) -> bool:
        if self.max_age_seconds is None:
            return True
        return (time.time() - cache_file.stat().st_mtime) <= self.max_age_seconds

    def get(self, query_params: dict) -> Optional[Any]:
        """
        Retrieve cached data if a fresh entry exists.

        Postconditions:
            - Returns cached data if found and not expired, None otherwise
            - Does not modify cache

        Raises:
            CacheError: If the cache file exists but cannot be read
        """
        cache_file = self._path(query_params)

        if not cache_file.exists() or not self._is_fresh(cache_file):
            return None

        try:
            with open(cache_file, "rb") as f:
                return pickle.load(f)
        except Exception as e:
            raise CacheError(f"Failed to read cache file: {e}") from e

    def set(self, query_params: dict, data: Any) -> None:
        """
        Store data in cache.

        Raises:
            CacheError: If the payload cannot be written
        """
        cache_file = self._path(query_params)

        try:
            with open(cache_file, "wb") as f:
                pickle.dump(data, f)
        except Exception as e:
            raise CacheError(f"Failed to write cache file: {e}") from e

    def clear(self) -> None:
        """Remove all cached files."""
        for cache_file in self.cache_dir.glob("*.pkl"):
            cache_file.unlink()

    def exists(self, query_params: dict) -> bool:
        """Check if a fresh entry exists for query."""
        cache_file = self._path(query_params)
        return cache_file.exists() and self._is_fresh(cache_file)
