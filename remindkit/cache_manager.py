"""Unified on-disk cache layout with one sub-directory per cache type."""

from __future__ import annotations

import enum
import logging
import os
import shutil
import threading
from pathlib import Path
from typing import Any

CACHE_DIR_ENV = "TO_ICALendar_CACHE_DIR"

_LEGACY_LOCATIONS = ("./cache", "./cache/images")


class CacheType(str, enum.Enum):
    """Kinds of cached data, each stored in its own sub-directory."""

    IMAGES = "images"
    TASKS = "tasks"
    GLOBAL = "global"
    TEMP = "temp"
    CONFIG = "config"
    SUBMITTED = "submitted"
    HASHES = "hashes"

    def __str__(self) -> str:
        return self.value


class CacheError(Exception):
    """Raised when a cache directory cannot be created or cleared."""


def default_cache_dir() -> str:
    """Return the cache directory used when none is given."""
    custom = os.environ.get(CACHE_DIR_ENV)
    if custom:
        return custom
    try:
        home = Path.home()
    except (RuntimeError, KeyError):
        return os.path.join(".", "cache")
    return os.path.join(str(home), ".to_icalendar", "cache")


def calculate_dir_size(dir_path: str | os.PathLike[str]) -> tuple[int, int]:
    """Return the total size in bytes and the number of files below a directory.

    Raises OSError if the directory or anything below it cannot be read.
    """
    root = os.fspath(dir_path)
    if not os.path.isdir(root):
        os.stat(root)  # raises for a missing path
        return os.path.getsize(root), 1

    def _raise(error: OSError) -> None:
        raise error

    total = 0
    count = 0
    for current, _dirs, files in os.walk(root, onerror=_raise):
        for name in files:
            total += os.lstat(os.path.join(current, name)).st_size
            count += 1
    return total, count


class UnifiedCacheManager:
    """Keeps every cache type under one base directory."""

    def __init__(
        self,
        base_dir: str | os.PathLike[str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        base = os.fspath(base_dir) if base_dir else default_cache_dir()
        try:
            os.makedirs(base, exist_ok=True)
        except OSError as exc:
            raise CacheError(f"创建基础缓存目录失败: {exc}") from exc
        self._base_dir = base
        self._sub_dirs: dict[CacheType, str] = {}
        self._initialize_sub_dirs()

    @property
    def base_cache_dir(self) -> str:
        """The directory all cache types live under."""
        with self._lock:
            return self._base_dir

    def _initialize_sub_dirs(self) -> None:
        with self._lock:
            self._sub_dirs = {cache_type: cache_type.value for cache_type in CacheType}
            for cache_type, sub_dir in self._sub_dirs.items():
                full_path = os.path.join(self._base_dir, sub_dir)
                try:
                    os.makedirs(full_path, exist_ok=True)
                except OSError as exc:
                    self._logger.warning("创建缓存子目录失败: %s -> %s: %s", cache_type, full_path, exc)
                else:
                    self._logger.debug("缓存子目录已创建: %s -> %s", cache_type, full_path)

    def _lookup(self, cache_type: CacheType | str) -> str | None:
        try:
            key = CacheType(cache_type)
        except ValueError:
            return None
        return self._sub_dirs.get(key)

    def get_cache_dir(self, cache_type: CacheType | str) -> str:
        """Directory for a cache type; the base directory for an unknown type."""
        with self._lock:
            sub_dir = self._lookup(cache_type)
            if sub_dir is None:
                return self._base_dir
            return os.path.join(self._base_dir, sub_dir)

    def get_cache_file_path(self, cache_type: CacheType | str, filename: str) -> str:
        """Path of a file inside a cache type's directory."""
        return os.path.join(self.get_cache_dir(cache_type), filename)

    def set_base_cache_dir(self, new_base_dir: str | os.PathLike[str]) -> None:
        """Switch to a new base directory and create its sub-directories."""
        new_base = os.fspath(new_base_dir)
        with self._lock:
            try:
                os.makedirs(new_base, exist_ok=True)
            except OSError as exc:
                raise CacheError(f"创建新的基础缓存目录失败: {exc}") from exc
            old_base = self._base_dir
            self._base_dir = new_base
            self._initialize_sub_dirs()
        self._logger.info("缓存基础目录已更改: %s -> %s", old_base, new_base)

    def list_cache_types(self) -> list[CacheType]:
        """All cache types this manager knows."""
        with self._lock:
            return list(self._sub_dirs)

    def get_cache_stats(self) -> dict[str, Any]:
        """Base directory, sub-directory names and per-type sizes."""
        with self._lock:
            stats: dict[str, Any] = {
                "base_cache_dir": self._base_dir,
                "sub_dirs": {str(t): sub for t, sub in self._sub_dirs.items()},
            }
            cache_sizes: dict[str, dict[str, Any]] = {}
            for cache_type in self._sub_dirs:
                cache_dir = self.get_cache_dir(cache_type)
                try:
                    size, count = calculate_dir_size(cache_dir)
                except OSError as exc:
                    self._logger.warning("计算缓存目录大小失败: %s: %s", cache_dir, exc)
                    continue
                cache_sizes[str(cache_type)] = {
                    "size_bytes": size,
                    "size_mb": size / (1024 * 1024),
                    "file_count": count,
                }
            stats["cache_sizes"] = cache_sizes
        return stats

    def clear_cache(self, cache_type: CacheType | str) -> None:
        """Delete everything inside a cache type's directory, keeping the directory."""
        cache_dir = self.get_cache_dir(cache_type)
        if not os.path.exists(cache_dir):
            return
        try:
            with os.scandir(cache_dir) as entries:
                for entry in list(entries):
                    if entry.is_dir(follow_symlinks=False):
                        shutil.rmtree(entry.path)
                    else:
                        os.remove(entry.path)
        except OSError as exc:
            raise CacheError(f"清空缓存失败: {cache_type}: {exc}") from exc
        try:
            os.makedirs(cache_dir, exist_ok=True)
        except OSError as exc:
            raise CacheError(f"重新创建缓存目录失败: {cache_type}: {exc}") from exc
        self._logger.info("缓存已清空: %s -> %s", cache_type, cache_dir)

    def clear_all_cache(self) -> None:
        """Clear every cache type, stopping at the first failure."""
        for cache_type in self.list_cache_types():
            try:
                self.clear_cache(cache_type)
            except CacheError as exc:
                self._logger.error("清空缓存失败: %s: %s", cache_type, exc)
                raise
        self._logger.info("所有缓存已清空")

    def is_legacy_cache_exists(self) -> bool:
        """Whether an old cache directory exists below the working directory."""
        return any(os.path.exists(path) for path in _LEGACY_LOCATIONS)

    def get_legacy_cache_paths(self) -> list[str]:
        """Old cache directories that exist below the working directory."""
        return [path for path in _LEGACY_LOCATIONS if os.path.exists(path)]