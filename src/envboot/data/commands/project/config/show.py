"""SUMMARY: Show the effective project configuration"""
import sys

from envboot.embedded import project_config_show

if __name__ == "__main__":
    sys.exit(project_config_show(sys.argv[1:]))
