#!/usr/bin/env python3
"""
Basic usage examples for Big File Sort.
"""

import os
import random
import shutil
import string
import tempfile
import time

import psutil

from big_file_sort import (
    sort_file,
    max_file_size,
    BudgetTooSmallError,
    MergeStrategy,
    SortConfig,
)


def generate_file(path, size):
    """Write ``size`` random lowercase letters to ``path``."""
    with open(path, 'wb') as f:
        f.write(''.join(random.choices(string.ascii_lowercase, k=size)).encode('ascii'))


def example_sort_file(work_dir):
    """Example: Sort a file much larger than the memory budget."""
    print("\n=== Sort File Example ===")

    path = os.path.join(work_dir, "big_file.txt")
    cache_size = 64
    generate_file(path, 3000)
    print(f"Generated {os.path.getsize(path):,} bytes, budget {cache_size} bytes "
          f"(max {max_file_size(cache_size):,} bytes per pass)")

    start = time.time()
    out_path = sort_file(path, cache_size)
    elapsed = time.time() - start

    with open(out_path, 'rb') as f:
        data = f.read()
    is_sorted = all(data[i] <= data[i + 1] for i in range(len(data) - 1))
    print(f"Sorted correctly: {is_sorted}")
    print(f"Time taken: {elapsed:.2f}s")
    print(f"First 40 bytes: {data[:40]!r}")


def example_budget_too_small(work_dir):
    """Example: Retry with the budget suggested by the error."""
    print("\n=== Budget Too Small Example ===")

    path = os.path.join(work_dir, "too_big.txt")
    generate_file(path, 1000)

    try:
        sort_file(path, cache_size=16)
    except BudgetTooSmallError as e:
        print(f"Rejected: {e}")
        out_path = sort_file(path, cache_size=e.required_cache_size)
        print(f"Sorted with {e.required_cache_size} bytes -> {out_path}")


def example_strategies(work_dir):
    """Example: Compare linear scan and heap merges on a wide fan-in."""
    print("\n=== Merge Strategy Example ===")

    path = os.path.join(work_dir, "wide.txt")
    generate_file(path, 200_000)

    for strategy in (MergeStrategy.LINEAR_SCAN, MergeStrategy.HEAP):
        start = time.time()
        sort_file(path, cache_size=1024, strategy=strategy)
        print(f"{strategy.value}: {time.time() - start:.2f}s")


def main():
    """Run all examples."""
    print("=== Big File Sort Examples ===")

    # Examples write many small files; skip the fsync
    SortConfig.set_defaults(fsync_output=False)

    work_dir = tempfile.mkdtemp()
    try:
        example_sort_file(work_dir)
        example_budget_too_small(work_dir)
        example_strategies(work_dir)
    finally:
        shutil.rmtree(work_dir, ignore_errors=True)

    memory_mb = psutil.Process().memory_info().rss / 1024 / 1024
    print(f"\nProcess memory: {memory_mb:.1f} MB")
    print("\n=== All examples completed! ===")


if __name__ == "__main__":
    main()
