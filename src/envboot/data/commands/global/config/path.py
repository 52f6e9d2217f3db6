"""SUMMARY: List configuration files in merge order"""
import sys

from envboot.embedded import global_config_path

if __name__ == "__main__":
    sys.exit(global_config_path(sys.argv[1:]))
