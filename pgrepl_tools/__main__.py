"""Allow ``python -m pgrepl_tools``."""

import sys

from pgrepl_tools.cli.commands import main

sys.exit(main())
