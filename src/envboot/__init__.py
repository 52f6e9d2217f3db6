"""
envboot - environment bootstrapping toolkit

Two cooperating entry points share one command engine: ``envboot`` manages
the user's global environment, ``envboot-project`` manages a single project.
Commands are discovered from project overrides, bundled modules and shared
module directories on every run.
"""

__version__ = "0.4.0"
__all__ = ["__version__"]
