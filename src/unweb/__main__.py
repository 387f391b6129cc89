"""Allow running as ``python -m unweb``."""

import sys

from .cli import main

sys.exit(main())
