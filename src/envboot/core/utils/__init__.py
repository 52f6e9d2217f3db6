"""Shared utilities for envboot (YAML I/O, layer merging)."""
