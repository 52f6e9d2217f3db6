"""SUMMARY: List the configuration files that apply to this project"""
import sys

from envboot.embedded import project_config_path

if __name__ == "__main__":
    sys.exit(project_config_path(sys.argv[1:]))
