"""Exceptions raised while decoding Claw REZ archives and PID images."""


class ClawToolkitError(ValueError):
    """Base class for malformed or unsupported input."""


class TruncatedHeader(ClawToolkitError):
    """The buffer is shorter than a fixed header region."""


class MalformedEntry(ClawToolkitError):
    """A directory record points outside the buffer or its current range."""


class CorruptCompressedStream(ClawToolkitError):
    """A PID pixel stream or palette cannot produce the expected data."""


class UnsupportedCompressionSelector(ClawToolkitError):
    """The PID compression selector names an unknown algorithm."""


class MissingPalette(ClawToolkitError):
    """A PID image has no embedded palette and none was supplied."""


class EmptyImage(ClawToolkitError):
    """A PID image has zero width or height and cannot be exported."""
