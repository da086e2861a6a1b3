"""Moving data from old cache locations into the unified cache layout."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

from remindkit.cache_manager import CacheType, UnifiedCacheManager

_PROGRAM_ROOT_CACHE = "./cache"
_LEGACY_IMAGE_CACHE = "./cache/images"


class MigrationError(Exception):
    """Raised when a single cache item cannot be migrated."""


@dataclass
class LegacyCachePaths:
    """Old cache locations found on disk."""

    program_root_cache: str = ""
    image_cache: str = ""
    user_config_cache: str = ""
    all_paths: list[str] = field(default_factory=list)


@dataclass
class MigrationItem:
    """One source path and where it should go."""

    source_path: str
    target_path: str
    cache_type: CacheType
    size: int = 0
    file_count: int = 0
    description: str = ""
    migration_action: str = "move"


@dataclass
class MigrationPlan:
    """Everything that a migration would move or copy."""

    legacy_paths: LegacyCachePaths
    target_base_dir: str
    migration_required: bool
    migrations: list[MigrationItem] = field(default_factory=list)
    total_size: int = 0
    total_files: int = 0


@dataclass
class MigrationOptions:
    """How a migration treats existing targets and sources."""

    dry_run: bool = False
    backup: bool = False
    delete_source: bool = False
    skip_existing: bool = False
    force_overwrite: bool = False


@dataclass
class FailedMigration:
    """An item that could not be migrated and why."""

    item: MigrationItem
    error: str


@dataclass
class MigrationResult:
    """Outcome of running a migration plan."""

    plan: MigrationPlan
    start_time: datetime
    end_time: datetime | None = None
    duration: timedelta = timedelta(0)
    success: bool = True
    migrated: list[MigrationItem] = field(default_factory=list)
    skipped: list[MigrationItem] = field(default_factory=list)
    failed: list[FailedMigration] = field(default_factory=list)


def _path_size(path: str) -> tuple[int, int]:
    """Total size and file count below a path, ignoring unreadable entries."""
    if os.path.isfile(path):
        try:
            return os.path.getsize(path), 1
        except OSError:
            return 0, 0
    total = 0
    count = 0
    for current, _dirs, files in os.walk(path):
        for name in files:
            try:
                total += os.lstat(os.path.join(current, name)).st_size
            except OSError:
                continue
            count += 1
    return total, count


def _file_size(path: str) -> int:
    try:
        return os.stat(path).st_size
    except OSError:
        return 0


class MigrationManager:
    """Finds old cache locations and moves their contents into the unified cache."""

    def __init__(
        self,
        cache_manager: UnifiedCacheManager,
        logger: logging.Logger | None = None,
    ) -> None:
        self._cache = cache_manager
        self._logger = logger or logging.getLogger(__name__)

    def detect_legacy_cache(self) -> LegacyCachePaths:
        """Return the old cache locations that exist."""
        paths = LegacyCachePaths()
        if os.path.exists(_PROGRAM_ROOT_CACHE):
            paths.program_root_cache = _PROGRAM_ROOT_CACHE
            paths.all_paths.append(_PROGRAM_ROOT_CACHE)
        if os.path.exists(_LEGACY_IMAGE_CACHE):
            paths.image_cache = _LEGACY_IMAGE_CACHE
            paths.all_paths.append(_LEGACY_IMAGE_CACHE)
        try:
            home = Path.home()
        except (RuntimeError, KeyError):
            home = None
        if home is not None:
            user_cache = os.path.join(str(home), ".to_icalendar", "cache")
            if os.path.exists(user_cache):
                paths.user_config_cache = user_cache
                paths.all_paths.append(user_cache)
        return paths

    def has_legacy_cache(self) -> bool:
        """Whether any old cache location exists."""
        return bool(self.detect_legacy_cache().all_paths)

    def get_migration_plan(self) -> MigrationPlan:
        """Work out what would be migrated, with sizes and file counts."""
        legacy = self.detect_legacy_cache()
        plan = MigrationPlan(
            legacy_paths=legacy,
            target_base_dir=self._cache.base_cache_dir,
            migration_required=bool(legacy.all_paths),
        )
        if not plan.migration_required:
            return plan
        for legacy_path in legacy.all_paths:
            plan.migrations.extend(self._analyze_legacy_path(legacy_path))
        plan.total_size = sum(item.size for item in plan.migrations)
        plan.total_files = sum(item.file_count for item in plan.migrations)
        return plan

    def execute_migration(self, plan: MigrationPlan, options: MigrationOptions) -> MigrationResult:
        """Run a plan; failures of single items are collected, not raised."""
        result = MigrationResult(plan=plan, start_time=datetime.now())
        total = len(plan.migrations)
        self._logger.info("开始缓存迁移，共 %d 个项目", total)

        for number, item in enumerate(plan.migrations, start=1):
            self._logger.info("迁移项目 %d/%d: %s", number, total, item.description)
            if options.dry_run:
                self._logger.info("[DRY RUN] 将迁移: %s -> %s", item.source_path, item.target_path)
                result.migrated.append(item)
                continue
            try:
                self._migrate_item(item, options)
            except (MigrationError, OSError) as exc:
                self._logger.warning("迁移失败: %s: %s", item.description, exc)
                result.success = False
                result.failed.append(FailedMigration(item=item, error=str(exc)))
            else:
                self._logger.info("迁移成功: %s", item.description)
                result.migrated.append(item)

        result.end_time = datetime.now()
        result.duration = result.end_time - result.start_time
        self._logger.info("缓存迁移完成，耗时: %s", result.duration)
        self._logger.info(
            "成功: %d, 跳过: %d, 失败: %d",
            len(result.migrated),
            len(result.skipped),
            len(result.failed),
        )
        return result

    def _analyze_legacy_path(self, legacy_path: str) -> list[MigrationItem]:
        if "images" in legacy_path:
            size, count = _path_size(legacy_path)
            return [
                MigrationItem(
                    source_path=legacy_path,
                    target_path=self._cache.get_cache_dir(CacheType.IMAGES),
                    cache_type=CacheType.IMAGES,
                    size=size,
                    file_count=count,
                    description=f"图片缓存: {legacy_path}",
                    migration_action="move",
                )
            ]
        if "submitted_tasks.json" in legacy_path:
            return [
                MigrationItem(
                    source_path=legacy_path,
                    target_path=self._cache.get_cache_file_path(
                        CacheType.SUBMITTED, "submitted_tasks.json"
                    ),
                    cache_type=CacheType.SUBMITTED,
                    size=_file_size(legacy_path),
                    file_count=1,
                    description=f"已提交任务缓存: {legacy_path}",
                    migration_action="copy",
                )
            ]
        if "image_hashes.json" in legacy_path:
            return [
                MigrationItem(
                    source_path=legacy_path,
                    target_path=self._cache.get_cache_file_path(
                        CacheType.HASHES, "image_hashes.json"
                    ),
                    cache_type=CacheType.HASHES,
                    size=_file_size(legacy_path),
                    file_count=1,
                    description=f"图片哈希缓存: {legacy_path}",
                    migration_action="copy",
                )
            ]
        size, count = _path_size(legacy_path)
        return [
            MigrationItem(
                source_path=legacy_path,
                target_path=self._cache.get_cache_dir(CacheType.GLOBAL),
                cache_type=CacheType.GLOBAL,
                size=size,
                file_count=count,
                description=f"其他缓存: {legacy_path}",
                migration_action="move",
            )
        ]

    def _migrate_item(self, item: MigrationItem, options: MigrationOptions) -> None:
        if not os.path.exists(item.source_path):
            raise MigrationError(f"源路径不存在: {item.source_path}")

        target_dir = item.target_path
        if item.file_count == 1:
            target_dir = os.path.dirname(item.target_path)
        if target_dir:
            try:
                os.makedirs(target_dir, exist_ok=True)
            except OSError as exc:
                raise MigrationError(f"创建目标目录失败: {exc}") from exc

        if os.path.exists(item.target_path) and not options.force_overwrite:
            if options.skip_existing:
                self._logger.info("目标已存在，跳过: %s", item.target_path)
                return
            raise MigrationError(f"目标已存在: {item.target_path}")

        is_dir = item.file_count > 1
        if item.migration_action == "copy":
            self._copy_path(item.source_path, item.target_path, is_dir)
        elif item.migration_action == "move":
            self._move_path(item.source_path, item.target_path, is_dir)
        else:
            raise MigrationError(f"不支持的迁移动作: {item.migration_action}")

    @staticmethod
    def _copy_path(src: str, dst: str, is_dir: bool) -> None:
        if is_dir:
            shutil.copytree(src, dst, dirs_exist_ok=True)
        else:
            shutil.copyfile(src, dst)

    @staticmethod
    def _move_path(src: str, dst: str, is_dir: bool) -> None:
        if is_dir:
            shutil.copytree(src, dst, dirs_exist_ok=True)
            shutil.rmtree(src)
        else:
            os.rename(src, dst)