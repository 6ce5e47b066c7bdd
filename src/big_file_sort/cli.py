"""Command line entry point: sort the bytes of one file."""

import argparse
import logging
import sys
from typing import List, Optional

from big_file_sort.config import MergeStrategy, SortConfig
from big_file_sort.errors import BudgetTooSmallError
from big_file_sort.sorter import sort_file

DEFAULT_PATH = "big_file.txt"

# Size of available memory. Used by caches.
MEM_SIZE_BYTES = 64


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="big-file-sort",
        description="Sort the bytes of a file using a fixed memory budget.",
    )
    parser.add_argument("path", nargs="?", default=DEFAULT_PATH,
                        help=f"file to sort (default: {DEFAULT_PATH})")
    parser.add_argument("-c", "--cache-size", type=int, default=MEM_SIZE_BYTES,
                        help=f"memory budget in bytes (default: {MEM_SIZE_BYTES})")
    parser.add_argument("-s", "--strategy",
                        choices=[s.value for s in MergeStrategy],
                        help="how the merge picks the next byte")
    parser.add_argument("--no-fsync", action="store_true",
                        help="do not sync the output file to disk")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="log progress (-vv for debug output)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.cache_size < 1:
        print(f"big-file-sort: cache size must be positive, got {args.cache_size}",
              file=sys.stderr)
        return 2

    if args.no_fsync:
        SortConfig.set_defaults(fsync_output=False)

    strategy = MergeStrategy(args.strategy) if args.strategy else None
    try:
        out_path = sort_file(args.path, args.cache_size, strategy=strategy)
    except BudgetTooSmallError as e:
        print(f"big-file-sort: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"big-file-sort: {e}", file=sys.stderr)
        return 1

    print(out_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
