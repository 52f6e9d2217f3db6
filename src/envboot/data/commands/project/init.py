"""SUMMARY: Initialize envboot in this project

Creates .envboot/config.yaml and .envboot/commands/project/ for project
command overrides. Existing files are kept unless --force is given.
"""
import sys

from envboot.embedded import project_init

if __name__ == "__main__":
    sys.exit(project_init(sys.argv[1:]))
