"""Allow ``python -m envboot`` (global mode)."""

import sys

from envboot.cli._dispatcher import main

if __name__ == "__main__":
    sys.exit(main(prog="envboot"))
