"""Allow ``python -m tagscout``."""

import sys

from .main import main

sys.exit(main())
