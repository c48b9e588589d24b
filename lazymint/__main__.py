"""Allow ``python -m lazymint``."""

import sys

from lazymint.cli import main

sys.exit(main())
