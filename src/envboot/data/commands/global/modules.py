"""SUMMARY: List discovered commands and where they come from

Shows every command of a mode together with the source tier that provided
it (override, built-in, shared or embedded). Modules rejected during
discovery are listed with the validation problems found.
"""
import sys

from envboot.embedded import global_modules

if __name__ == "__main__":
    sys.exit(global_modules(sys.argv[1:]))
