"""Claw Toolkit CLI."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .errors import ClawToolkitError


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output from the decoders")
def main(verbose: bool):
    """Claw Toolkit - Inspect and extract Captain Claw game files.

    \b
    REZ archives: list or extract the directory tree
    PID images:   show header flags, convert to PNG
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def load_palette_option(path: Optional[Path]):
    if path is None:
        return None
    from .formats import load_palette

    return load_palette(path)


@main.command()
@click.argument("archive", type=click.Path(exists=True, path_type=Path))
def tree(archive: Path):
    """Print the directory tree of a REZ archive."""
    from .rez import RezArchive, RezDirectory

    try:
        rez = RezArchive.from_file(archive)

        click.echo(f"Description: {rez.header.description}")
        click.echo(f"Version:     {rez.header.version}")
        click.echo()

        for parent, entry in rez.walk():
            if isinstance(entry, RezDirectory):
                click.echo(f">> dir: {'/'.join(parent + (entry.filename,))}")
            else:
                click.echo(f"- file: {'/'.join(parent + (entry.full_name,))}")

    except (ClawToolkitError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("archive", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Output directory (default: <archive_name>_extracted)",
)
@click.option(
    "--convert/--no-convert",
    default=False,
    help="Also export PID images as PNG",
)
@click.option(
    "--palette",
    type=click.Path(exists=True, path_type=Path),
    help="Palette file for PID images without an embedded palette",
)
@click.option(
    "--list-only",
    is_flag=True,
    help="List files without extracting",
)
def extract(archive: Path, output: Optional[Path], convert: bool, palette: Optional[Path], list_only: bool):
    """Extract files from a REZ archive.

    The archive's directory tree is recreated under the output directory.
    With --convert, PID images are additionally written as PNG next to the
    extracted file.
    """
    from .rez import RezArchive

    click.echo(f"Opening: {archive}")

    try:
        rez = RezArchive.from_file(archive)

        if list_only:
            files = rez.list_files()
            click.echo(f"\nFiles in archive ({len(files)}):")
            for filename in files:
                click.echo(f"  {filename}")
            return

        if output is None:
            output = archive.parent / f"{archive.stem}_extracted"

        colors = load_palette_option(palette)

        click.echo(f"Output:  {output}")
        click.echo(f"Convert: {'yes' if convert else 'no'}")
        click.echo()

        extracted_count = 0
        converted_count = 0
        for filename, path in rez.extract_all(output):
            extracted_count += 1
            if convert and path.suffix.lower() == ".pid":
                converted_count += auto_convert_pid(path, colors)

        click.echo(f"Extracted: {extracted_count} files")
        if convert:
            click.echo(f"Converted: {converted_count} images")

    except (ClawToolkitError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("pid_file", type=click.Path(exists=True, path_type=Path))
def pid(pid_file: Path):
    """Show the header of a PID image."""
    from .formats import PIDImage

    click.echo(f"Loading: {pid_file}")

    try:
        image = PIDImage.from_file(pid_file)
        flags = image.flags

        click.echo(f"Id:          {image.id}")
        click.echo(f"Size:        {image.width}x{image.height}")
        click.echo(f"Flags:       0x{flags.value:02X} ({flags})")
        click.echo(f"Compression: {flags.compression.name}")
        click.echo(f"Palette:     {'embedded' if image.palette else 'none'}")
        click.echo(f"User values: {', '.join(str(v) for v in image.user_values)}")

    except (ClawToolkitError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("pid_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Output PNG file path",
)
@click.option(
    "--palette",
    type=click.Path(exists=True, path_type=Path),
    help="Palette file used when the image has no embedded palette",
)
@click.option(
    "--flip/--no-flip",
    default=True,
    help="Apply the image's mirroring flags",
)
def pid2png(pid_file: Path, output: Optional[Path], palette: Optional[Path], flip: bool):
    """Convert a PID image to PNG format."""
    from .converters import convert_pid_to_png

    click.echo(f"Loading: {pid_file}")

    try:
        if output is None:
            output = pid_file.with_suffix(".png")

        convert_pid_to_png(pid_file, output, palette=load_palette_option(palette), apply_flips=flip)
        click.echo(f"Created: {output}")

    except (ClawToolkitError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def auto_convert_pid(path: Path, palette=None) -> int:
    """Convert a PID file to PNG. Returns 1 if converted, 0 otherwise."""
    from .converters import convert_pid_to_png

    try:
        convert_pid_to_png(path, path.with_suffix(".png"), palette=palette)
        return 1
    except ClawToolkitError as e:
        click.echo(f"  Warning: {path.name}: {e}", err=True)
        return 0


if __name__ == "__main__":
    main()
