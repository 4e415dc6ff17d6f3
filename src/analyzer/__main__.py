"""Allow ``python -m src.analyzer``."""

import sys

from src.analyzer.cli import main

sys.exit(main())
