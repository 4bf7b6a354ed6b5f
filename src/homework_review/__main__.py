"""``python -m homework_review``."""

import sys

from homework_review.cli import main

sys.exit(main())
