"""Run snaprotate: python -m snaprotate"""

import sys

from snaprotate.cli import main

if __name__ == "__main__":
    sys.exit(main())
