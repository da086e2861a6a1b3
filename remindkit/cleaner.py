"""Removing cached, temporary and generated files, with a dry-run preview."""

from __future__ import annotations

import logging
import os
import re
import stat
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Iterator, Optional, Protocol

from remindkit.cache_manager import CACHE_DIR_ENV

TEMP_DIR_ENV = "TO_ICALendar_TEMP_DIR"
IMAGE_HASH_FILE = "image_hashes.json"

_IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp"})
_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")
_PREVIEW_LIMIT = 10


class CleanerError(Exception):
    """Raised when cleaning cannot start, such as for a bad age filter."""


class _DedupCache(Protocol):
    """The deduplication cache the cleaner works with."""

    def get_cache_dir(self) -> str: ...

    def clear_cache(self) -> None: ...

    def cleanup_expired_images(self) -> None: ...

    def clear_image_cache(self) -> None: ...


@dataclass
class CleanOptions:
    """What to clean and how."""

    all: bool = False
    tasks: bool = False
    images: bool = False
    image_hashes: bool = False
    temp: bool = False
    generated: bool = False
    dry_run: bool = False
    force: bool = False
    older_than: str = ""
    clear_all: bool = False


@dataclass
class CleanResult:
    """Files found (and removed unless previewing) for one kind of cache."""

    cache_type: str
    files_count: int = 0
    size_bytes: int = 0
    files: list[str] = field(default_factory=list)
    duration: timedelta = timedelta(0)
    error: Optional[str] = None


def format_bytes(size: int) -> str:
    """Human readable size with binary units, such as "1.5 KB"."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMGTPE'[exp]}B"


def _format_duration(duration: timedelta) -> str:
    seconds = duration.total_seconds()
    if seconds == 0:
        return "0s"
    if seconds < 1e-3:
        return f"{seconds * 1e6:.3f}µs"
    if seconds < 1:
        return f"{seconds * 1e3:.3f}ms"
    return f"{seconds:.3f}s"


@dataclass
class CleanSummary:
    """All results of one clean run."""

    results: list[CleanResult] = field(default_factory=list)
    duration: timedelta = timedelta(0)

    @property
    def total_files(self) -> int:
        return sum(result.files_count for result in self.results)

    @property
    def total_size(self) -> int:
        return sum(result.size_bytes for result in self.results)

    def print_summary(self) -> None:
        """Print what was removed."""
        print("\n=== 清理完成 ===")
        print(f"总耗时: {_format_duration(self.duration)}")
        print(f"清理文件数: {self.total_files}")
        print(f"释放空间: {format_bytes(self.total_size)}")
        print("\n详细结果:")
        for result in self.results:
            if result.error is not None:
                print(f"❌ {result.cache_type}: {result.error}")
                continue
            print(
                f"✅ {result.cache_type}: {result.files_count}个文件, "
                f"{format_bytes(result.size_bytes)}, 耗时{_format_duration(result.duration)}"
            )

    def print_preview(self) -> None:
        """Print what would be removed."""
        print("\n=== 清理预览 ===")
        print(f"预计删除文件数: {self.total_files}")
        print(f"预计释放空间: {format_bytes(self.total_size)}")
        print("\n将要删除的文件:")
        for result in self.results:
            if result.error is not None:
                print(f"❌ {result.cache_type}: {result.error}")
                continue
            print(
                f"\n📁 {result.cache_type} ({result.files_count}个文件, "
                f"{format_bytes(result.size_bytes)}):"
            )
            for path in result.files[:_PREVIEW_LIMIT]:
                print(f"  - {path}")
            if len(result.files) > _PREVIEW_LIMIT:
                print(f"  ... 还有 {len(result.files) - _PREVIEW_LIMIT} 个文件")
        print("\n注意：这只是预览，实际不会删除任何文件。使用 --force 参数执行实际清理。")


def parse_older_than(value: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Turn an age such as "7d", "24h" or "30m" into a cut-off time.

    An empty value means no filter and gives None.
    """
    if not value:
        return None
    now = now or datetime.now()
    units = (
        ("d", lambda n: timedelta(days=n), "无效的天数格式"),
        ("h", lambda n: timedelta(hours=n), "无效的小时格式"),
        ("m", lambda n: timedelta(minutes=n), "无效的分钟格式"),
    )
    for suffix, make_delta, message in units:
        if value.endswith(suffix):
            match = _LEADING_INT.match(value[: -len(suffix)])
            if match is None:
                raise CleanerError(f"{message}: {value}")
            return now - make_delta(int(match.group(1)))
    raise CleanerError(f"不支持的时间格式: {value} (支持: 7d, 24h, 30m)")


def is_image_file(path: str) -> bool:
    """Whether the path has an image file extension."""
    return os.path.splitext(path)[1].lower() in _IMAGE_EXTENSIONS


def is_generated_file(path: str) -> bool:
    """Whether the file name looks like a generated JSON file."""
    name = os.path.basename(path)
    if not name.endswith(".json"):
        return False
    return name.startswith("temp_") or "_parsed_" in name or name.startswith("dify_")


def _walk(root: str) -> Iterator[tuple[str, os.stat_result]]:
    """Yield every path below root in lexical order; raise OSError on failure."""
    info = os.lstat(root)
    yield root, info
    if stat.S_ISDIR(info.st_mode):
        for name in sorted(os.listdir(root)):
            child = name if root == "." else os.path.join(root, name)
            yield from _walk(child)


def _home_subdir(*parts: str) -> str:
    try:
        home = Path.home()
    except (RuntimeError, KeyError):
        return ""
    return os.path.join(str(home), *parts)


class Cleaner:
    """Cleans the task cache, image cache, temporary and generated files."""

    def __init__(
        self,
        cache_manager: Optional[_DedupCache] = None,
        image_cache_dir: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._cache_manager = cache_manager
        self._image_cache_dir = image_cache_dir
        self._logger = logger or logging.getLogger(__name__)

    def clean(self, options: CleanOptions) -> CleanSummary:
        """Clean what the options select and return what was found."""
        started = time.monotonic()
        try:
            older_than = parse_older_than(options.older_than)
        except CleanerError as exc:
            raise CleanerError(f"解析时间参数失败: {exc}") from exc

        summary = CleanSummary()
        dry_run = options.dry_run
        if options.all or options.tasks:
            summary.results.append(self._clean_tasks_cache(dry_run, older_than))
        if options.all or options.images or options.image_hashes:
            summary.results.append(self._clean_images_cache(dry_run, older_than))
        if options.image_hashes:
            summary.results.append(self._clean_image_hash_cache(dry_run))
        if options.all or options.temp:
            summary.results.append(self._clean_temp_files(dry_run, older_than))
        if options.all or options.generated:
            summary.results.append(self._clean_generated_files(dry_run, older_than))

        if options.clear_all and self._cache_manager is not None and not dry_run:
            try:
                self._cache_manager.clear_cache()
            except Exception as exc:  # the cache manager is an outside collaborator
                self._logger.warning("清空所有缓存失败: %s", exc)
            else:
                self._logger.info("已清空所有缓存数据")

        summary.duration = timedelta(seconds=time.monotonic() - started)
        return summary

    def _sweep(
        self,
        result: CleanResult,
        root: str,
        dry_run: bool,
        older_than: Optional[datetime],
        accept: Callable[[str], bool] = lambda _path: True,
    ) -> None:
        for path, info in _walk(root):
            if stat.S_ISDIR(info.st_mode) or not accept(path):
                continue
            if older_than is not None and datetime.fromtimestamp(info.st_mtime) > older_than:
                continue
            result.files_count += 1
            result.size_bytes += info.st_size
            result.files.append(path)
            if not dry_run:
                os.remove(path)
                self._logger.info("已删除%s文件: %s", result.cache_type, path)

    def _dedup_cache_dir(self, result: CleanResult) -> str:
        if self._cache_manager is None:
            result.error = "缓存管理器未初始化"
            return ""
        cache_dir = self._cache_manager.get_cache_dir()
        if not cache_dir:
            result.error = "无法获取缓存目录路径"
        return cache_dir

    def _clean_tasks_cache(self, dry_run: bool, older_than: Optional[datetime]) -> CleanResult:
        result = CleanResult(cache_type="任务缓存")
        started = time.monotonic()
        try:
            cache_dir = self._dedup_cache_dir(result)
            if cache_dir:
                try:
                    self._sweep(result, cache_dir, dry_run, older_than)
                except OSError as exc:
                    result.error = f"清理任务缓存失败: {exc}"
        finally:
            result.duration = timedelta(seconds=time.monotonic() - started)
        return result

    def _clean_images_cache(self, dry_run: bool, older_than: Optional[datetime]) -> CleanResult:
        result = CleanResult(cache_type="图片缓存")
        started = time.monotonic()
        try:
            self._clean_images_into(result, dry_run, older_than)
        finally:
            result.duration = timedelta(seconds=time.monotonic() - started)
        return result

    def _clean_images_into(
        self, result: CleanResult, dry_run: bool, older_than: Optional[datetime]
    ) -> None:
        image_dir = self._image_dir()
        if image_dir:
            try:
                self._sweep(result, image_dir, dry_run, older_than, is_image_file)
            except OSError as exc:
                result.error = f"清理图片文件缓存失败: {exc}"
                return

        if self._cache_manager is None:
            return
        cache_dir = self._cache_manager.get_cache_dir()
        if not cache_dir:
            return
        hash_file = os.path.join(cache_dir, IMAGE_HASH_FILE)
        try:
            info = os.stat(hash_file)
        except OSError:
            return
        modified = datetime.fromtimestamp(info.st_mtime)
        if older_than is None or modified < older_than or dry_run:
            result.files_count += 1
            result.size_bytes += info.st_size
            result.files.append(hash_file)
            if not dry_run:
                try:
                    self._cache_manager.cleanup_expired_images()
                except Exception as exc:
                    result.error = f"清理图片哈希缓存失败: {exc}"
                    return
                self._logger.info("已清理图片哈希缓存: %s", hash_file)

    def _clean_image_hash_cache(self, dry_run: bool) -> CleanResult:
        result = CleanResult(cache_type="图片哈希缓存")
        started = time.monotonic()
        try:
            cache_dir = self._dedup_cache_dir(result)
            if cache_dir:
                self._clear_hash_file(result, os.path.join(cache_dir, IMAGE_HASH_FILE), dry_run)
        finally:
            result.duration = timedelta(seconds=time.monotonic() - started)
        return result

    def _clear_hash_file(self, result: CleanResult, hash_file: str, dry_run: bool) -> None:
        try:
            info = os.stat(hash_file)
        except FileNotFoundError:
            self._logger.info("图片哈希缓存文件不存在，跳过: %s", hash_file)
            return
        except OSError as exc:
            result.error = f"检查图片哈希缓存文件失败: {exc}"
            return
        result.files_count += 1
        result.size_bytes += info.st_size
        result.files.append(hash_file)
        if not dry_run:
            try:
                self._cache_manager.clear_image_cache()  # type: ignore[union-attr]
            except Exception as exc:
                result.error = f"清空图片哈希缓存失败: {exc}"
                return
            self._logger.info("已清空图片哈希缓存: %s", hash_file)

    def _clean_temp_files(self, dry_run: bool, older_than: Optional[datetime]) -> CleanResult:
        result = CleanResult(cache_type="临时文件")
        started = time.monotonic()
        try:
            temp_dir = os.environ.get(TEMP_DIR_ENV) or _home_subdir(".to_icalendar", "temp")
            if not temp_dir:
                result.error = "无法获取临时目录路径"
            elif os.path.exists(temp_dir):
                try:
                    self._sweep(result, temp_dir, dry_run, older_than)
                except OSError as exc:
                    result.error = f"清理临时文件失败: {exc}"
        finally:
            result.duration = timedelta(seconds=time.monotonic() - started)
        return result

    def _clean_generated_files(
        self, dry_run: bool, older_than: Optional[datetime]
    ) -> CleanResult:
        result = CleanResult(cache_type="生成文件")
        started = time.monotonic()
        try:
            self._sweep(result, ".", dry_run, older_than, is_generated_file)
        except OSError as exc:
            result.error = f"清理生成文件失败: {exc}"
        finally:
            result.duration = timedelta(seconds=time.monotonic() - started)
        return result

    def _image_dir(self) -> str:
        if self._image_cache_dir:
            return self._image_cache_dir
        from_env = os.environ.get(CACHE_DIR_ENV)
        if from_env:
            return from_env
        return _home_subdir(".to_icalendar", "cache")