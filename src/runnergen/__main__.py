"""Allow ``python -m runnergen``."""

import sys

from runnergen.cli import main

sys.exit(main())
