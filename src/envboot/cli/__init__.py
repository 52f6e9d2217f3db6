"""envboot command-line entry points."""
