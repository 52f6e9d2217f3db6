"""envboot core: modes, configuration, paths and the command registry."""
