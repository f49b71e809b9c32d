"""REZ archive header."""

import logging
from dataclasses import dataclass
from typing import Tuple

from ..errors import TruncatedHeader
from ..utils.binary import Buffer, BinaryReader

logger = logging.getLogger(__name__)

# Fixed preamble size in bytes
REZ_HEADER_SIZE = 163
DESCRIPTION_SIZE = 127


@dataclass(frozen=True)
class RezHeader:
    """REZ archive header (163 bytes)."""

    description: str  # 127 bytes: NUL-padded text
    version: int  # 4 bytes @127
    dir_offset: int  # 4 bytes @131: absolute offset of the root directory table
    dir_size: int  # 4 bytes @135
    datetime: int  # 4 bytes @147: packed, not decoded
    dir_name_max: int  # 4 bytes @155: advisory
    file_name_max: int  # 4 bytes @159: advisory
    # Opaque words @139, @143 and @151, sometimes a secondary index offset
    reserved: Tuple[int, int, int] = (0, 0, 0)

    @property
    def dir_end(self) -> int:
        return self.dir_offset + self.dir_size


def parse_header(data: Buffer) -> RezHeader:
    """Decode the fixed REZ preamble.

    Raises:
        TruncatedHeader: the buffer cannot hold the preamble, or the
            directory table it describes runs past the end of the buffer.
    """
    if len(data) < REZ_HEADER_SIZE:
        raise TruncatedHeader(f"REZ data too small: {len(data)} bytes, expected at least {REZ_HEADER_SIZE}")

    reader = BinaryReader(data)

    description = reader.read_fixed_string(DESCRIPTION_SIZE)
    version = reader.read_u32()
    dir_offset = reader.read_u32()
    dir_size = reader.read_u32()
    reserved_a = reader.read_u32()
    reserved_b = reader.read_u32()
    datetime = reader.read_u32()
    reserved_c = reader.read_u32()
    dir_name_max = reader.read_u32()
    file_name_max = reader.read_u32()

    header = RezHeader(
        description=description,
        version=version,
        dir_offset=dir_offset,
        dir_size=dir_size,
        datetime=datetime,
        dir_name_max=dir_name_max,
        file_name_max=file_name_max,
        reserved=(reserved_a, reserved_b, reserved_c),
    )

    if header.dir_end > len(data):
        raise TruncatedHeader(
            f"Directory table [{dir_offset}, {header.dir_end}) exceeds archive size {len(data)}"
        )

    logger.debug("REZ header: version=%d dir=0x%X+%d", version, dir_offset, dir_size)
    return header
