"""
Sort the bytes of a file with a fixed memory budget.

The file is cut into ``cache_size`` chunks, each sorted in memory and
written as a run to a scratch file::

    +------------+------------+-----+------------------+
    | CACHE SIZE | CACHE SIZE | ... | CACHE SIZE - REM |
    +------------+------------+-----+------------------+

The runs are then merged in a single pass by :class:`MergeEngine`.  The
largest file one pass can sort is ``cache_size * (cache_size - 1)`` bytes.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from big_file_sort.config import MergeStrategy, config
from big_file_sort.merge import MergeEngine
from big_file_sort.runs import produce_runs

logger = logging.getLogger(__name__)


def tagged_path(path: Union[str, Path], tag: str) -> Path:
    """``dir/stem.ext`` -> ``dir/stem.<tag>.ext``"""
    path = Path(path)
    return path.with_name(f"{path.stem}.{tag}{path.suffix}")


def scratch_path_for(path: Union[str, Path]) -> Path:
    return tagged_path(path, config.scratch_tag)


def output_path_for(path: Union[str, Path]) -> Path:
    return tagged_path(path, config.output_tag)


def sort_file(
    path: Union[str, Path],
    cache_size: Optional[int] = None,
    strategy: Optional[MergeStrategy] = None
) -> Path:
    """
    Sort the content of ``path`` byte by byte and return the sorted file.

    Args:
        path: File to sort
        cache_size: Memory budget in bytes (None to use the configured one)
        strategy: Merge strategy (None to use the configured one)

    Returns:
        Path of the sorted output, or ``path`` itself when the file has at
        most one byte

    Raises:
        BudgetTooSmallError: cache_size cannot merge the runs of this file
        OSError: reading or writing any of the files failed
    """
    path = Path(path)
    cache_size = config.resolve_cache_size(cache_size)
    if cache_size < 1:
        raise ValueError(f"cache_size must be positive, got {cache_size}")

    available = config.available_memory()
    if cache_size > available:
        logger.warning(
            f"Memory budget {config.format_bytes(cache_size)} exceeds "
            f"available memory {config.format_bytes(available)}"
        )

    scratch_path = scratch_path_for(path)
    out_path = output_path_for(path)

    # Phase 1: Create sorted runs
    try:
        layout = produce_runs(path, cache_size, scratch_path)
    except BaseException:
        _remove_quietly(scratch_path)
        raise

    if layout.file_length <= 1:
        logger.info(f"File is already sorted: {path}")
        _remove_quietly(scratch_path)
        return path

    # We have sorted the whole file in memory
    if layout.caches_num == 1:
        try:
            os.replace(scratch_path, out_path)
        except BaseException:
            _remove_quietly(scratch_path)
            raise
        logger.info(f"Sorted {path} in a single run -> {out_path}")
        return out_path

    # Phase 2: Merge runs
    with MergeEngine(layout, out_path, strategy=strategy) as engine:
        stats = engine.merge()

    logger.info(
        f"Merged {layout.caches_num} runs of {path} "
        f"({config.format_bytes(stats.bytes_written)}, {stats.flushes} flushes, "
        f"{stats.refills} refills, {stats.strategy.value}) -> {out_path}"
    )
    return out_path


def _remove_quietly(path: Path) -> None:
    try:
        os.unlink(path)
    except OSError:
        pass
