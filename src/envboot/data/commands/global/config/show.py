"""SUMMARY: Show the effective configuration

Prints the merged configuration as YAML, or a single value when a dotted
key such as help.width is given.
"""
import sys

from envboot.embedded import global_config_show

if __name__ == "__main__":
    sys.exit(global_config_show(sys.argv[1:]))
