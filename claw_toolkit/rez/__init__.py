"""REZ archive support."""

from .header import REZ_HEADER_SIZE, RezHeader, parse_header
from .reader import DirectoryListing, RezArchive, RezDirectory, RezFile, walk

__all__ = [
    "REZ_HEADER_SIZE",
    "RezHeader",
    "parse_header",
    "DirectoryListing",
    "RezArchive",
    "RezDirectory",
    "RezFile",
    "walk",
]
