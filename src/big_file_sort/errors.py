"""Errors raised while sorting a file."""

import math


class SortError(Exception):
    """Base class for sorting errors."""


class BudgetTooSmallError(SortError, ValueError):
    """The memory budget cannot hold one byte per run plus the output buffer.

    Recoverable: retry with ``required_cache_size`` or more.
    """

    def __init__(self, cache_size: int, caches_num: int, file_length: int):
        self.cache_size = cache_size
        self.caches_num = caches_num
        self.file_length = file_length
        super().__init__(
            f"File is too big: {file_length} bytes split into {caches_num} runs "
            f"need a cache of at least {self.required_cache_size} bytes, "
            f"got {cache_size}"
        )

    @property
    def required_cache_size(self) -> int:
        # Smallest c with ceil(file_length / c) <= c - 1; none below isqrt.
        size = max(2, math.isqrt(self.file_length))
        while -(-self.file_length // size) > size - 1:
            size += 1
        return size


class TruncatedRunError(SortError, OSError):
    """The scratch file ended before a run slice could be read completely."""
