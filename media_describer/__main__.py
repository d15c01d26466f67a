"""Allow ``python -m media_describer``."""

import sys

from media_describer.cli import main

sys.exit(main())
