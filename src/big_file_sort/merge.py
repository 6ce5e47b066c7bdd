"""
Bounded-memory k-way merge of the sorted runs in a scratch file.

Scratch file (runs of ``cache_size`` bytes, the last one may be shorter)::

    +------------+------------+-----+------------------+
    | SORTED RUN | SORTED RUN | ... | SORTED RUN - REM |
    +----+-------+----+-------+-----+----+-------------+   +-----+
    | IN |       | IN |             | IN |                 | OUT |
    +----+       +----+             +----+                 +-----+

Every run gets an input sub-buffer of ``cache_size // (caches_num + 1)``
bytes and one more sub-buffer of the same size collects the output.  A run
is consumed one slice (one sub-buffer worth of bytes) at a time; the output
sub-buffer is written out whenever it fills up.
"""

import heapq
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from big_file_sort.config import MergeStrategy, config
from big_file_sort.errors import BudgetTooSmallError, TruncatedRunError
from big_file_sort.runs import BYTE_VALUES, RunLayout

logger = logging.getLogger(__name__)


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


@dataclass
class MergeStats:
    """Counters collected while merging."""
    bytes_written: int = 0
    flushes: int = 0
    refills: int = 0
    strategy: MergeStrategy = MergeStrategy.LINEAR_SCAN


class MergeEngine:
    """
    Merges the runs of a scratch file into a single sorted output file.

    The engine owns the scratch file: it is deleted when the engine is
    closed, whether the merge finished or failed.  Use it as a context
    manager::

        with MergeEngine(layout, output_path) as engine:
            engine.merge()
    """

    def __init__(self,
                 layout: RunLayout,
                 output_path: Union[str, Path],
                 strategy: Optional[MergeStrategy] = None,
                 fsync: Optional[bool] = None):
        """
        Validate the memory budget, open both files and load the first
        slice of every run.

        Raises:
            BudgetTooSmallError: fewer than one byte per run and output buffer
            OSError: opening or reading the files failed
        """
        self.layout = layout
        self.scratch_path = Path(layout.scratch_path)
        self.output_path = Path(output_path)
        self.fsync = config.fsync_output if fsync is None else fsync
        self._in_file = None
        self._out_file = None
        self._closed = False

        cache_size = layout.cache_size
        caches_num = layout.caches_num
        self.cache_size = cache_size
        self.caches_num = caches_num

        if caches_num > cache_size - 1:
            self.close()
            raise BudgetTooSmallError(cache_size, caches_num, layout.file_length)

        self.strategy = config.resolve_strategy(caches_num, strategy)

        # Geometry, fixed for the lifetime of the engine
        self.buffer_size = cache_size // (caches_num + 1)
        last_run_size = layout.last_run_length
        self.slices_per_run = _ceil_div(cache_size, self.buffer_size)
        self.slices_per_last_run = _ceil_div(last_run_size, self.buffer_size)
        self.last_slice_size = cache_size - (self.slices_per_run - 1) * self.buffer_size
        self.last_slice_in_last_run_size = (
            last_run_size - (self.slices_per_last_run - 1) * self.buffer_size
        )

        # Per-run cursor state
        self._in_buffers = [bytearray(self.buffer_size) for _ in range(caches_num)]
        self._in_lengths = [0] * caches_num
        self._in_positions = [0] * caches_num
        self._slice_index = [0] * caches_num
        self._out_buffer = bytearray(self.buffer_size)
        self._out_length = 0
        self.stats = MergeStats(strategy=self.strategy)

        logger.debug(
            f"Merging {caches_num} runs: buffer_size={self.buffer_size}, "
            f"slices_per_run={self.slices_per_run}, "
            f"slices_per_last_run={self.slices_per_last_run}, "
            f"strategy={self.strategy.value}"
        )

        try:
            self._in_file = open(self.scratch_path, 'rb')
            self._out_file = open(self.output_path, 'wb')
            self.init_buffers()
        except BaseException:
            self.close(discard_output=True)
            raise

    def __enter__(self) -> 'MergeEngine':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close(discard_output=exc_type is not None)

    def __del__(self):
        if not getattr(self, "_closed", True):
            self.close()

    def _is_last_run(self, i: int) -> bool:
        return i == self.caches_num - 1

    def _slices_in_run(self, i: int) -> int:
        if self._is_last_run(i):
            return self.slices_per_last_run
        return self.slices_per_run

    def _slice_length(self, i: int, slice_index: int) -> int:
        """Bytes in slice ``slice_index`` of run ``i``."""
        if slice_index != self._slices_in_run(i) - 1:
            return self.buffer_size
        if self._is_last_run(i):
            return self.last_slice_in_last_run_size
        return self.last_slice_size

    def _read_slice(self, i: int, length: int) -> None:
        view = memoryview(self._in_buffers[i])[:length]
        n = self._in_file.readinto(view)
        if n != length:
            raise TruncatedRunError(
                f"{self.scratch_path}: run {i} slice {self._slice_index[i]} "
                f"expected {length} bytes, got {n or 0}"
            )
        self._in_lengths[i] = length
        self._in_positions[i] = 0
        self._slice_index[i] += 1

    def init_buffers(self) -> None:
        """Load the first slice of every run, walking the scratch file in order."""
        self._in_file.seek(0)
        for i in range(self.caches_num):
            read_len = self._slice_length(i, 0)
            self._slice_index[i] = 0
            self._read_slice(i, read_len)
            if not self._is_last_run(i):
                # Skip the rest of this run to land on the next one
                self._in_file.seek(self.cache_size - read_len, os.SEEK_CUR)
        self._out_length = 0

    def load_next_buffer(self, i: int) -> bool:
        """
        Refill run ``i`` with its next slice.

        Returns:
            False when the run is exhausted; its buffer is left empty
        """
        slice_index = self._slice_index[i]
        if slice_index == self._slices_in_run(i):
            self._in_lengths[i] = 0
            self._in_positions[i] = 0
            return False

        read_len = self._slice_length(i, slice_index)
        self._in_file.seek(self.layout.run_offset(i) + slice_index * self.buffer_size)
        self._read_slice(i, read_len)
        self.stats.refills += 1
        return True

    def _advance(self, i: int) -> bool:
        """Consume the head byte of run ``i``; False once the run is exhausted."""
        self._in_positions[i] += 1
        if self._in_positions[i] == self._in_lengths[i]:
            return self.load_next_buffer(i)
        return True

    def _emit(self, value: int) -> None:
        self._out_buffer[self._out_length] = value
        self._out_length += 1
        if self._out_length == self.buffer_size:
            self._flush()

    def _flush(self) -> None:
        if self._out_length:
            self._out_file.write(memoryview(self._out_buffer)[:self._out_length])
            self.stats.bytes_written += self._out_length
            self.stats.flushes += 1
            self._out_length = 0

    def merge(self) -> MergeStats:
        """
        Merge all runs into the output file.

        Returns:
            MergeStats for the completed merge
        """
        if self.strategy == MergeStrategy.HEAP:
            self._merge_heap()
        else:
            self._merge_linear()

        # Write out the rest
        self._flush()
        self._out_file.flush()
        if self.fsync:
            os.fsync(self._out_file.fileno())
        return self.stats

    def _merge_linear(self) -> None:
        """Scan every run head for the minimum, once per emitted byte."""
        buffers = self._in_buffers
        lengths = self._in_lengths
        positions = self._in_positions

        while True:
            min_ind = -1
            smallest = BYTE_VALUES
            for i in range(self.caches_num):
                pos = positions[i]
                if pos < lengths[i]:
                    value = buffers[i][pos]
                    if value < smallest:
                        smallest = value
                        min_ind = i

            # Nothing buffered anywhere: all runs merged
            if min_ind < 0:
                break

            self._emit(smallest)
            self._advance(min_ind)

    def _merge_heap(self) -> None:
        """Keep run heads in a heap keyed by (byte, run index)."""
        heap = []
        for i in range(self.caches_num):
            if self._in_positions[i] < self._in_lengths[i]:
                heap.append((self._in_buffers[i][self._in_positions[i]], i))
        heapq.heapify(heap)

        while heap:
            value, i = heap[0]
            self._emit(value)
            if self._advance(i):
                heapq.heapreplace(heap, (self._in_buffers[i][self._in_positions[i]], i))
            else:
                heapq.heappop(heap)

    def close(self, discard_output: bool = False) -> None:
        """Close both files and delete the scratch file.

        Args:
            discard_output: Also delete the (partial) output file
        """
        if self._closed:
            return
        self._closed = True

        for handle in (self._in_file, self._out_file):
            if handle is not None:
                try:
                    handle.close()
                except OSError:
                    pass

        paths: List[Path] = [self.scratch_path]
        if discard_output and self._out_file is not None:
            paths.append(self.output_path)
        for path in paths:
            try:
                os.unlink(path)
            except OSError:
                pass
