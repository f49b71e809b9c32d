"""REZ archive reader and extractor.

The directory table is a sequence of variable-length records. Every record
starts with the same 16-byte header::

    u32 type         1 = directory, anything else = file
    u32 body_offset  absolute offset of the children / file content
    u32 body_size    0 terminates the sibling list
    u32 datetime

followed by, for a directory, a NUL-terminated name and, for a file, a u32
id, the NUL-terminated extension stored back to front, 4 unknown bytes, the
NUL-terminated name and one more unknown byte.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from ..errors import MalformedEntry
from ..utils.binary import Buffer, BinaryReader
from .header import RezHeader, parse_header

logger = logging.getLogger(__name__)

ENTRY_HEADER_SIZE = 16
ENTRY_TYPE_DIRECTORY = 1

# Unknown bytes between a file's extension terminator and its name
FILE_NAME_GAP = 4
# Unknown byte after a file name terminator
FILE_TRAILER_SIZE = 1

NAME_ENCODING = "latin-1"


@dataclass
class RezDirectory:
    """A directory record; its children are read on demand."""

    name: memoryview
    datetime: int
    children: "DirectoryListing"

    @property
    def filename(self) -> str:
        return bytes(self.name).decode(NAME_ENCODING)


@dataclass
class RezFile:
    """A file record. ``content`` is a view into the archive buffer."""

    name: memoryview
    datetime: int
    file_id: int
    stored_extension: memoryview  # extension bytes as stored, back to front
    content: memoryview

    @property
    def extension(self) -> str:
        return bytes(self.stored_extension)[::-1].decode(NAME_ENCODING)

    @property
    def filename(self) -> str:
        return bytes(self.name).decode(NAME_ENCODING)

    @property
    def full_name(self) -> str:
        """Name with the extension restored, e.g. ``LOGO.PID``.

        A file with an empty extension gets its bare name, without a
        trailing dot.
        """
        if not self.extension:
            return self.filename
        return f"{self.filename}.{self.extension}"

    @property
    def size(self) -> int:
        return len(self.content)


RezEntry = Union[RezDirectory, RezFile]


class DirectoryListing:
    """Lazy, restartable sequence of the records in ``[start, end)``.

    Iterating twice walks the table twice; nothing is cached. Subdirectories
    are only read when their own ``children`` listing is iterated.
    """

    def __init__(self, data: Buffer, start: int, end: int):
        self._data = memoryview(data)
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[RezEntry]:
        cursor = self.start
        while True:
            entry, cursor = self._read_entry(cursor)
            if entry is None:
                return
            yield entry

    def __repr__(self) -> str:
        return f"DirectoryListing(start=0x{self.start:X}, end=0x{self.end:X})"

    def _read_entry(self, cursor: int) -> Tuple[Optional[RezEntry], int]:
        """Decode the record at ``cursor``; return it with the next cursor."""
        if cursor >= len(self._data) or cursor >= self.end:
            return None, cursor

        reader = BinaryReader(self._data, cursor)
        try:
            kind = reader.read_u32()
            body_offset = reader.read_u32()
            body_size = reader.read_u32()
            datetime = reader.read_u32()
        except EOFError as e:
            raise MalformedEntry(f"Truncated entry header at 0x{cursor:X}: {e}") from e

        if body_size == 0:
            return None, cursor

        body_end = body_offset + body_size
        if body_end > len(self._data):
            raise MalformedEntry(
                f"Entry at 0x{cursor:X} body [0x{body_offset:X}, 0x{body_end:X}) exceeds archive size {len(self._data)}"
            )

        try:
            if kind == ENTRY_TYPE_DIRECTORY:
                name = reader.read_cstring(self.end)
                entry = RezDirectory(
                    name=name,
                    datetime=datetime,
                    children=DirectoryListing(self._data, body_offset, body_end),
                )
            else:
                file_id = reader.read_u32()
                stored_extension = reader.read_cstring(self.end)
                reader.skip(FILE_NAME_GAP)
                name = reader.read_cstring(self.end)
                reader.skip(FILE_TRAILER_SIZE)
                entry = RezFile(
                    name=name,
                    datetime=datetime,
                    file_id=file_id,
                    stored_extension=stored_extension,
                    content=self._data[body_offset:body_end],
                )
        except EOFError as e:
            raise MalformedEntry(f"Malformed entry at 0x{cursor:X}: {e}") from e

        logger.debug("Entry at 0x%X: %r body=0x%X+%d", cursor, bytes(name), body_offset, body_size)
        return entry, reader.tell()


def walk(listing: DirectoryListing) -> Iterator[Tuple[Tuple[str, ...], RezEntry]]:
    """Depth-first pre-order walk yielding ``(parent_path, entry)`` pairs.

    Uses an explicit stack of live iterators, so arbitrarily deep archives
    do not grow the call stack. A directory whose children range is already
    open further up the stack raises ``MalformedEntry``.
    """
    stack: List[Tuple[Tuple[str, ...], Iterator[RezEntry], Tuple[int, int]]] = [
        ((), iter(listing), (listing.start, listing.end))
    ]
    open_ranges = {(listing.start, listing.end)}
    while stack:
        path, entries, table = stack[-1]
        entry = next(entries, None)
        if entry is None:
            stack.pop()
            open_ranges.discard(table)
            continue
        yield path, entry
        if isinstance(entry, RezDirectory):
            children = entry.children
            child_table = (children.start, children.end)
            if child_table in open_ranges:
                raise MalformedEntry(f"Directory cycle at 0x{children.start:X} ({entry.filename!r})")
            open_ranges.add(child_table)
            stack.append((path + (entry.filename,), iter(children), child_table))


def _path_component(name: str) -> str:
    # Entry names must not escape the output directory
    if name in ("", ".", "..") or "/" in name or "\\" in name:
        raise MalformedEntry(f"Unsafe entry name: {name!r}")
    return name


class RezArchive:
    """A REZ archive held in memory."""

    def __init__(self, data: Union[Buffer, str, Path]):
        if isinstance(data, (str, Path)):
            data = Path(data).read_bytes()
        self._data = memoryview(data)
        self._header = parse_header(self._data)
        self._root = DirectoryListing(self._data, self._header.dir_offset, self._header.dir_end)

    @property
    def header(self) -> RezHeader:
        return self._header

    @property
    def root(self) -> DirectoryListing:
        return self._root

    @property
    def data(self) -> memoryview:
        return self._data

    @classmethod
    def from_file(cls, path: Path) -> "RezArchive":
        """Load a REZ archive from a file."""
        return cls(Path(path))

    @classmethod
    def from_bytes(cls, data: Buffer) -> "RezArchive":
        """Load a REZ archive from bytes."""
        return cls(data)

    def walk(self) -> Iterator[Tuple[Tuple[str, ...], RezEntry]]:
        return walk(self._root)

    def files(self) -> Iterator[Tuple[str, RezFile]]:
        """Yield ``(archive_path, file)`` for every file, depth-first."""
        for parent, entry in self.walk():
            if isinstance(entry, RezFile):
                yield "/".join(parent + (entry.full_name,)), entry

    def list_files(self) -> List[str]:
        """List all file paths in the archive."""
        return [path for path, _ in self.files()]

    def find(self, path: str) -> Optional[RezFile]:
        """Find a file by its archive path (case-insensitive, ``/`` or ``\\``)."""
        wanted = path.replace("\\", "/").strip("/").lower()
        for name, entry in self.files():
            if name.lower() == wanted:
                return entry
        return None

    def extract_all(self, output_dir: Path) -> Iterator[Tuple[str, Path]]:
        """Recreate the directory tree under ``output_dir``.

        Yields (archive_path, output_path) for each written file.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        for parent, entry in self.walk():
            target = output_dir.joinpath(*parent)
            if isinstance(entry, RezDirectory):
                (target / _path_component(entry.filename)).mkdir(parents=True, exist_ok=True)
                continue

            output_path = target / _path_component(entry.full_name)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(entry.content)

            yield "/".join(parent + (entry.full_name,)), output_path

    def __repr__(self) -> str:
        return (
            f"RezArchive(version={self._header.version}, "
            f"dir_offset=0x{self._header.dir_offset:X}, dir_size={self._header.dir_size})"
        )
