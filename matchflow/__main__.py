"""Allow ``python -m matchflow``."""

import sys

from .cli import main

main(sys.argv[1:])
