"""Format converters."""

from .pid_to_png import convert_pid_to_png

__all__ = ["convert_pid_to_png"]
