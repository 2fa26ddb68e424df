"""Route group exports."""

from . import adherence, health, timeline

__all__ = ["adherence", "health", "timeline"]
