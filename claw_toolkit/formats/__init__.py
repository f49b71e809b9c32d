"""Claw file format parsers."""

from .pid import CompressionMethod, PIDFlags, PIDHeader, PIDImage, decode_pid, load_palette

__all__ = ["CompressionMethod", "PIDFlags", "PIDHeader", "PIDImage", "decode_pid", "load_palette"]
