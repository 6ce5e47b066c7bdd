"""
Run production: split a file into memory-sized chunks and write them back
sorted, one after another, into a scratch file.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

BYTE_VALUES = 256


@dataclass
class RunLayout:
    """Sorted runs laid out back-to-back in a scratch file."""
    scratch_path: Path
    cache_size: int
    file_length: int
    caches_num: int

    @property
    def last_run_length(self) -> int:
        """Length of the final run, shorter than ``cache_size`` for a remainder."""
        if self.caches_num == 0:
            return 0
        return self.file_length - self.cache_size * (self.caches_num - 1)

    def run_length(self, index: int) -> int:
        if index == self.caches_num - 1:
            return self.last_run_length
        return self.cache_size

    def run_offset(self, index: int) -> int:
        return index * self.cache_size


def sort_chunk(chunk: bytearray) -> None:
    """Sort ``chunk`` in place by byte value.

    Counting sort: equal bytes are indistinguishable, so there is no order
    among duplicates to preserve.
    """
    counts = [chunk.count(value) for value in range(BYTE_VALUES)]
    pos = 0
    for value, count in enumerate(counts):
        if count:
            chunk[pos:pos + count] = bytes((value,)) * count
            pos += count


def produce_runs(
    path: Union[str, Path],
    cache_size: int,
    scratch_path: Union[str, Path]
) -> RunLayout:
    """
    Write the sorted runs of ``path`` to ``scratch_path``.

    Args:
        path: File to read
        cache_size: Maximum bytes held in memory at once
        scratch_path: Destination of the concatenated runs (truncated)

    Returns:
        RunLayout describing the scratch file
    """
    if cache_size < 1:
        raise ValueError(f"cache_size must be positive, got {cache_size}")

    scratch_path = Path(scratch_path)
    cache = bytearray(cache_size)
    file_length = 0
    caches_num = 0

    with open(path, 'rb') as src, open(scratch_path, 'wb') as dst:
        while True:
            n = src.readinto(cache)
            if not n:
                break

            # Only the final chunk comes back short
            if n < len(cache):
                del cache[n:]

            sort_chunk(cache)
            dst.write(cache)
            file_length += n
            caches_num += 1

    logger.debug(f"Wrote {caches_num} runs ({file_length} bytes) to {scratch_path}")
    return RunLayout(
        scratch_path=scratch_path,
        cache_size=cache_size,
        file_length=file_length,
        caches_num=caches_num,
    )
