"""PID to PNG image converter."""

import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from PIL import Image

from ..errors import EmptyImage, MissingPalette
from ..formats.pid import PALETTE_ENTRIES, PIDImage

logger = logging.getLogger(__name__)

# Palette index written for transparent pixels by the RLE scheme
TRANSPARENT_INDEX = 0


def flatten_palette(palette: Sequence[Tuple[int, int, int]]) -> bytes:
    """Pack RGB triples into the flat ``r, g, b, r, g, b...`` form PIL expects."""
    if len(palette) != PALETTE_ENTRIES:
        raise ValueError(f"Palette must have {PALETTE_ENTRIES} entries, got {len(palette)}")
    return bytes(channel for color in palette for channel in color)


def convert_pid_to_png(
    pid: Union[PIDImage, bytes, Path],
    output_path: Optional[Path] = None,
    palette: Optional[Sequence[Tuple[int, int, int]]] = None,
    apply_flips: bool = True,
) -> Image.Image:
    """Convert a PID image to a paletted PIL image.

    Args:
        pid: PID image (PIDImage instance, bytes, or file path)
        output_path: Optional path to write a PNG file
        palette: Palette used when the image has none of its own
        apply_flips: Mirror the image according to its flip flags

    Returns:
        The image in mode ``P``
    """
    if isinstance(pid, Path):
        pid = PIDImage.from_file(pid)
    elif isinstance(pid, (bytes, bytearray, memoryview)):
        pid = PIDImage.from_bytes(pid)

    if pid.width == 0 or pid.height == 0:
        raise EmptyImage(f"PID {pid.id} is {pid.width}x{pid.height}, nothing to export")

    colors = pid.palette if pid.palette is not None else palette
    if colors is None:
        raise MissingPalette(f"PID {pid.id} has no embedded palette and none was supplied")

    img = Image.frombytes("P", (pid.width, pid.height), pid.pixels)
    img.putpalette(flatten_palette(colors))

    if apply_flips:
        if pid.flags.flip_horizontal:
            img = img.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
        if pid.flags.flip_vertical:
            img = img.transpose(Image.Transpose.FLIP_TOP_BOTTOM)

    if pid.flags.use_transparency:
        img.info["transparency"] = TRANSPARENT_INDEX

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        img.save(output_path, format="PNG")
        logger.debug("Wrote %s (%dx%d)", output_path, pid.width, pid.height)

    return img
