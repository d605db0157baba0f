"""Allow running as: python -m agent_stats"""

import sys

from .cli import main

sys.exit(main())
