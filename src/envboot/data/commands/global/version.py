"""SUMMARY: Show the envboot version

Prints the installed envboot version. Use --json for machine-readable output.
"""
import sys

from envboot.embedded import global_version

if __name__ == "__main__":
    sys.exit(global_version(sys.argv[1:]))
