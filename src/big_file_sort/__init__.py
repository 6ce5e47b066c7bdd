"""
Big File Sort: sort the bytes of an arbitrarily large file with a fixed
memory budget.

The file is split into sorted runs that fit the budget, then the runs are
merged back in a single bounded-memory pass.
"""

from big_file_sort.config import SortConfig, MergeStrategy, max_file_size
from big_file_sort.errors import SortError, BudgetTooSmallError, TruncatedRunError
from big_file_sort.runs import RunLayout, produce_runs
from big_file_sort.merge import MergeEngine, MergeStats
from big_file_sort.sorter import sort_file

__version__ = "0.1.0"
__license__ = "Apache-2.0"

__all__ = [
    "SortConfig",
    "MergeStrategy",
    "max_file_size",
    "SortError",
    "BudgetTooSmallError",
    "TruncatedRunError",
    "RunLayout",
    "produce_runs",
    "MergeEngine",
    "MergeStats",
    "sort_file",
]
