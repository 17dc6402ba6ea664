"""Allow running as `python -m artimirror`."""

import sys

from .cli import main

sys.exit(main())
