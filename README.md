# remindkit

Building blocks for a reminder tool. The package does four things:

- It manages a local cache directory.
- It moves old cache folders into the new layout.
- It cleans up stale cached, temporary and generated files.
- It turns raw clipboard data into images.

## Installation

```
pip install remindkit
```

You need Python 3.10 or newer. Pillow is the only dependency.

## Modules

### `remindkit.cache_manager`

`UnifiedCacheManager(base_dir, logger)` keeps one base directory. Inside it there is one subdirectory for each `CacheType`: `images`, `tasks`, `global`, `temp`, `config`, `submitted` and `hashes`.

If `base_dir` is empty, `default_cache_dir()` picks the directory:

1. the `TO_ICALendar_CACHE_DIR` environment variable, when it is set;
2. otherwise `~/.to_icalendar/cache`.

The manager has these methods:

- `get_cache_dir(cache_type)` returns a type's directory. For an unknown type it returns the base directory.
- `get_cache_file_path(cache_type, filename)` returns the path of a file inside a type's directory.
- `set_base_cache_dir(new_base_dir)` moves the cache to a new base directory.
- `list_cache_types()` returns the known cache types.
- `get_cache_stats()` reports the base directory, the subdirectory names, and the size and file count of each type.
- `clear_cache(cache_type)` empties one type's directory and keeps the directory.
- `clear_all_cache()` empties every type.
- `is_legacy_cache_exists()` and `get_legacy_cache_paths()` look for `./cache` and `./cache/images`.

`calculate_dir_size(path)` returns `(total_bytes, file_count)` for a directory.

A directory that cannot be created or cleared raises `CacheError`.

### `remindkit.migration`

`MigrationManager(cache_manager, logger)` has these methods:

- `detect_legacy_cache()` looks for old cache locations: `./cache`, `./cache/images` and `~/.to_icalendar/cache`. It returns them as `LegacyCachePaths`.
- `has_legacy_cache()` tells whether any old cache location exists.
- `get_migration_plan()` builds a `MigrationPlan`. The plan holds one `MigrationItem` per location, with its sizes and file counts.
- `execute_migration(plan, options)` carries out the plan and returns a `MigrationResult`.

`MigrationOptions` has these flags:

- `dry_run`
- `backup`
- `delete_source`
- `skip_existing`
- `force_overwrite`

When an item fails, `execute_migration` does not raise. It records the item as a `FailedMigration` in the result.

### `remindkit.cleaner`

`Cleaner(cache_manager, image_cache_dir, logger)` removes files and returns a `CleanSummary` of `CleanResult`s. The `CleanOptions` flags choose what it cleans:

| Flag | What it cleans |
| --- | --- |
| `tasks` | Task cache files in the cache manager's directory |
| `images` | Image files in the image cache directory, plus the `image_hashes.json` file |
| `image_hashes` | The same as `images`, then the hash cache is cleared |
| `temp` | Temporary files in `TO_ICALendar_TEMP_DIR`, or else `~/.to_icalendar/temp` |
| `generated` | Generated JSON files below the working directory: `temp_*.json`, `*_parsed_*.json` and `dify_*.json` |
| `all` | Everything above except the `image_hashes` step |

Other options:

- `dry_run` only lists the files and deletes nothing.
- `older_than` keeps files newer than the given age.
- `clear_all` asks the cache manager to clear everything.

The `cache_manager` argument is optional. When you pass one, it must be an object with four methods:

- `get_cache_dir()`
- `clear_cache()`
- `cleanup_expired_images()`
- `clear_image_cache()`

Without a cache manager, the task and hash steps record an error in their result.

`CleanSummary` has these members:

- `total_files` and `total_size` add up the results.
- `print_summary()` prints what was removed, to standard output.
- `print_preview()` prints what would be removed, to standard output.

The module also has these helpers:

- `parse_older_than("7d")` returns a cut-off time. Ages use `d`, `h` or `m`, as in `24h` or `30m`.
- `is_image_file(path)` tells whether a path has an image extension.
- `is_generated_file(path)` tells whether a file name looks like a generated JSON file.
- `format_bytes(1536)` returns `"1.5 KB"`.

An age that cannot be read raises `CleanerError`.

### `remindkit.timerange`

- `parse_time_from_range("14:30 - 16:30")` returns `"14:30"`. Ranges may be separated by `-`, `~`, `～`, `到` or `至`. A string with no valid time comes back unchanged.
- `is_valid_time_format("9:05")` tells whether a string is an `H:MM` or `HH:MM` clock time.

### `remindkit.pixels`

These functions turn raw bitmap pixel rows into RGBA Pillow images:

- `convert_bgra`
- `convert_bgr`
- `convert_palette8`
- `convert_rgb565`
- `convert_masked`

Rows are read from bottom to top. Pixels that the data is too short to hold are left transparent.

`count_trailing_zeros(mask)` returns the shift of a channel mask.

### `remindkit.clipfiles`

- `parse_file_list(data, wide)` splits a null-separated list of dropped file names. Set `wide` for UTF-16LE data; otherwise the data is read as narrow bytes.
- `is_image_file(path)` tells whether a path has an image extension.
- `process_image(data)` decodes an image and returns PNG bytes. If either side is larger than 1024 pixels, it first scales the image to a width of 1024. Data that cannot be decoded raises `ValueError`.

## Example

```python
from remindkit.cache_manager import CacheType, UnifiedCacheManager
from remindkit.cleaner import Cleaner, CleanOptions

manager = UnifiedCacheManager("/tmp/remind-cache", None)
shot = manager.get_cache_file_path(CacheType.IMAGES, "shot.png")

cleaner = Cleaner(None, manager.get_cache_dir(CacheType.IMAGES), None)
summary = cleaner.clean(CleanOptions(images=True, dry_run=True, older_than="7d"))
summary.print_preview()
```

## What the package does not do

- It does not read the system clipboard.
- It does not parse bitmap headers. You pass it pixel rows and masks yourself.
- It has no command-line tool.
- It does not load server or reminder configuration files.
- It does not send anything to a to-do service.
- It keeps no deduplication store of its own. The cleaner works with one that you provide.

## Running the tests

```
pip install -e ".[test]"
pytest
```