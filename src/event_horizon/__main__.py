"""python -m event_horizon"""

import sys

from event_horizon.cli import main

if __name__ == "__main__":
    sys.exit(main())
