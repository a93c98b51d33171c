"""Build orchestrator for assembling a hacked ROM from a clean ROM and external tools."""

__version__ = "0.3.0"
