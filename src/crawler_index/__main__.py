"""Allow `python -m crawler_index`."""

import sys

from crawler_index.cli import main

sys.exit(main())
