"""PID image format parser.

PID is Claw's paletted bitmap format. Key characteristics:
- 24-byte little-endian header: id, flags, width, height, 4 user values
- One byte per pixel (palette index), compressed with one of two schemes
- Optional 256-entry RGB palette directly after the pixel stream
"""

import logging
from dataclasses import dataclass
from enum import IntEnum, IntFlag
from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple, Union

from ..errors import CorruptCompressedStream, TruncatedHeader, UnsupportedCompressionSelector
from ..utils.binary import Buffer, BinaryReader

logger = logging.getLogger(__name__)

PID_HEADER_SIZE = 24
PALETTE_ENTRIES = 256
PALETTE_SIZE = PALETTE_ENTRIES * 3

# Largest number of pixels a single source byte can stand for (RLE skip of 127)
MAX_PIXELS_PER_BYTE = 127


class PIDFlag(IntFlag):
    """Bits of the PID flag word."""

    TRANSPARENCY = 0x01
    VIDEO_MEMORY = 0x02
    SYSTEM_MEMORY = 0x04
    FLIP_HORIZONTAL = 0x08
    FLIP_VERTICAL = 0x10
    COMPRESSION = 0x20
    LIGHTS = 0x40
    PALETTE = 0x80


class CompressionMethod(IntEnum):
    """Pixel compression selector (flag bit 5)."""

    DEFAULT = 0  # packed runs: 193..255 = run of the next byte
    RLE = 1  # 129..255 = transparent skip, 0..128 = literal count


class RGB(NamedTuple):
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class PIDFlags:
    """PID flag word. The raw value is kept so unknown bits survive."""

    value: int

    def _has(self, flag: PIDFlag) -> bool:
        return bool(self.value & flag)

    @property
    def use_transparency(self) -> bool:
        return self._has(PIDFlag.TRANSPARENCY)

    @property
    def video_memory(self) -> bool:
        return self._has(PIDFlag.VIDEO_MEMORY)

    @property
    def system_memory(self) -> bool:
        return self._has(PIDFlag.SYSTEM_MEMORY)

    @property
    def flip_horizontal(self) -> bool:
        return self._has(PIDFlag.FLIP_HORIZONTAL)

    @property
    def flip_vertical(self) -> bool:
        return self._has(PIDFlag.FLIP_VERTICAL)

    @property
    def compression(self) -> CompressionMethod:
        return CompressionMethod.RLE if self._has(PIDFlag.COMPRESSION) else CompressionMethod.DEFAULT

    @property
    def has_lights(self) -> bool:
        return self._has(PIDFlag.LIGHTS)

    @property
    def has_palette(self) -> bool:
        return self._has(PIDFlag.PALETTE)

    @property
    def unknown_bits(self) -> int:
        return self.value & ~0xFF

    def __str__(self) -> str:
        names = [flag.name for flag in PIDFlag if self.value & flag]
        return "|".join(names) if names else "none"


@dataclass
class PIDHeader:
    """PID image header (24 bytes)."""

    id: int  # i32
    flags: PIDFlags
    width: int
    height: int
    user_values: Tuple[int, int, int, int]  # opaque, application-defined

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


def parse_pid_header(reader: BinaryReader) -> PIDHeader:
    """Read the fixed PID header at the reader's position."""
    if reader.remaining() < PID_HEADER_SIZE:
        raise TruncatedHeader(f"PID data too small: {reader.remaining()} bytes, expected at least {PID_HEADER_SIZE}")

    image_id = reader.read_i32()
    flags = PIDFlags(reader.read_u32())
    width = reader.read_u32()
    height = reader.read_u32()
    user_values = (reader.read_i32(), reader.read_i32(), reader.read_i32(), reader.read_i32())

    return PIDHeader(
        id=image_id,
        flags=flags,
        width=width,
        height=height,
        user_values=user_values,
    )


def _check_pixel_count(reader: BinaryReader, pixel_count: int) -> None:
    available = reader.remaining()
    if pixel_count > available * MAX_PIXELS_PER_BYTE:
        raise CorruptCompressedStream(
            f"{pixel_count} pixels cannot be produced from {available} remaining bytes"
        )


def decompress_default(reader: BinaryReader, pixel_count: int) -> bytes:
    """Expand the packed-run stream into ``pixel_count`` palette indices.

    A byte above 192 is a run of ``byte - 192`` copies of the next byte;
    any other byte is a single literal pixel.
    """
    _check_pixel_count(reader, pixel_count)
    pixels = bytearray()
    try:
        while len(pixels) < pixel_count:
            a = reader.read_u8()
            if a > 192:
                run = a - 192
                value = reader.read_u8()
                if len(pixels) + run > pixel_count:
                    raise CorruptCompressedStream(
                        f"Run of {run} at offset {reader.tell() - 2} overshoots {pixel_count} pixels"
                    )
                pixels.extend(bytes((value,)) * run)
            else:
                pixels.append(a)
    except EOFError as e:
        raise CorruptCompressedStream(f"Pixel stream ended after {len(pixels)} of {pixel_count} pixels") from e
    return bytes(pixels)


def decompress_rle(reader: BinaryReader, pixel_count: int) -> bytes:
    """Expand the transparent-skip stream into ``pixel_count`` palette indices.

    A byte above 128 writes ``byte - 128`` zero (transparent) pixels; any
    other byte is followed by that many literal pixels.
    """
    _check_pixel_count(reader, pixel_count)
    pixels = bytearray()
    try:
        while len(pixels) < pixel_count:
            a = reader.read_u8()
            run = a - 128 if a > 128 else a
            if len(pixels) + run > pixel_count:
                raise CorruptCompressedStream(
                    f"Run of {run} at offset {reader.tell() - 1} overshoots {pixel_count} pixels"
                )
            if a > 128:
                pixels.extend(bytes(run))
            else:
                pixels.extend(reader.read_bytes(a))
    except EOFError as e:
        raise CorruptCompressedStream(f"Pixel stream ended after {len(pixels)} of {pixel_count} pixels") from e
    return bytes(pixels)


DECOMPRESSORS = {
    CompressionMethod.DEFAULT: decompress_default,
    CompressionMethod.RLE: decompress_rle,
}


def decompress(reader: BinaryReader, method: int, pixel_count: int) -> bytes:
    """Dispatch to the decompressor named by the compression selector."""
    try:
        decompressor = DECOMPRESSORS[CompressionMethod(method)]
    except (ValueError, KeyError) as e:
        raise UnsupportedCompressionSelector(f"Unknown compression selector: {method}") from e
    return decompressor(reader, pixel_count)


def read_palette(reader: BinaryReader) -> List[RGB]:
    """Read 256 RGB triples at the reader's position."""
    try:
        data = reader.read_bytes(PALETTE_SIZE)
    except EOFError as e:
        raise CorruptCompressedStream(f"Palette truncated: {e}") from e
    return [RGB(data[i], data[i + 1], data[i + 2]) for i in range(0, PALETTE_SIZE, 3)]


def load_palette(data: Union[Buffer, Path]) -> List[RGB]:
    """Load a standalone palette file (768 bytes of RGB triples)."""
    if isinstance(data, Path):
        data = data.read_bytes()
    return read_palette(BinaryReader(data))


@dataclass
class PIDImage:
    """A decoded PID image."""

    header: PIDHeader
    pixels: bytes  # width * height palette indices
    palette: Optional[List[RGB]] = None
    end_offset: int = 0  # first byte after the decoded data

    @property
    def id(self) -> int:
        return self.header.id

    @property
    def flags(self) -> PIDFlags:
        return self.header.flags

    @property
    def width(self) -> int:
        return self.header.width

    @property
    def height(self) -> int:
        return self.header.height

    @property
    def user_values(self) -> Tuple[int, int, int, int]:
        return self.header.user_values

    @classmethod
    def from_file(cls, path: Path) -> "PIDImage":
        """Load a PID image from a file."""
        return decode_pid(Path(path).read_bytes())

    @classmethod
    def from_bytes(cls, data: Buffer) -> "PIDImage":
        """Load a PID image from bytes."""
        return decode_pid(data)

    def __repr__(self) -> str:
        return (
            f"PIDImage(id={self.id}, width={self.width}, height={self.height}, "
            f"flags=0x{self.flags.value:02X}, palette={'yes' if self.palette else 'no'})"
        )


def decode_pid(data: Buffer) -> PIDImage:
    """Decode a complete PID payload."""
    reader = BinaryReader(data)
    header = parse_pid_header(reader)

    pixels = decompress(reader, header.flags.compression, header.pixel_count)

    palette = None
    if header.flags.has_palette:
        palette = read_palette(reader)

    logger.debug(
        "PID %d: %dx%d %s flags=%s, consumed %d of %d bytes",
        header.id,
        header.width,
        header.height,
        header.flags.compression.name,
        header.flags,
        reader.tell(),
        len(reader.data),
    )
    return PIDImage(header=header, pixels=pixels, palette=palette, end_offset=reader.tell())
