import sys

from big_file_sort.cli import main

sys.exit(main())
