"""Claw Toolkit - read REZ archives and PID images from Captain Claw."""

__version__ = "0.1.0"
