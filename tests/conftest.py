"""Shared fixtures: builders for small REZ archives and PID images."""

import struct

import pytest

SENTINEL = b"\x00" * 16


def dir_record(name: bytes, body_offset: int, body_size: int, datetime: int = 0) -> bytes:
    return struct.pack("<4I", 1, body_offset, body_size, datetime) + name + b"\x00"


def file_record(
    name: bytes,
    extension: bytes,
    body_offset: int,
    body_size: int,
    file_id: int = 0,
    datetime: int = 0,
) -> bytes:
    """File record; ``extension`` is given the conventional way round."""
    return (
        struct.pack("<5I", 0, body_offset, body_size, datetime, file_id)
        + extension[::-1]
        + b"\x00"
        + b"\x00" * 4
        + name
        + b"\x00"
        + b"\x00"
    )


def rez_header(
    dir_offset: int,
    dir_size: int,
    description: bytes = b"Test archive",
    version: int = 1,
    datetime: int = 0,
    reserved=(0, 0, 0),
    dir_name_max: int = 64,
    file_name_max: int = 64,
) -> bytes:
    return description.ljust(127, b"\x00") + struct.pack(
        "<9I",
        version,
        dir_offset,
        dir_size,
        reserved[0],
        reserved[1],
        datetime,
        reserved[2],
        dir_name_max,
        file_name_max,
    )


def make_rez(tree, **header_kwargs) -> bytes:
    """Lay out a REZ archive.

    ``tree`` is a list of ``("dir", name, children)`` and
    ``("file", name, extension, content, file_id)`` tuples. File contents
    come first, then each directory table (children before parents) with a
    zero-size sentinel record at its end.
    """
    blob = bytearray(163)

    def place_table(nodes):
        records = []
        for node in nodes:
            if node[0] == "dir":
                offset, size = place_table(node[2])
                records.append(dir_record(node[1], offset, size))
            else:
                _, name, extension, content, file_id = node
                offset = len(blob)
                blob.extend(content)
                records.append(file_record(name, extension, offset, len(content), file_id))
        table = b"".join(records) + SENTINEL
        offset = len(blob)
        blob.extend(table)
        return offset, len(table)

    dir_offset, dir_size = place_table(tree)
    blob[:163] = rez_header(dir_offset, dir_size, **header_kwargs)
    return bytes(blob)


def make_pid(
    width: int,
    height: int,
    stream: bytes,
    flags: int = 0,
    image_id: int = 1,
    user_values=(0, 0, 0, 0),
    palette: bytes = b"",
) -> bytes:
    return struct.pack("<iIII4i", image_id, flags, width, height, *user_values) + stream + palette


# 2x2 image, default compression: literal 5, run of 3 x 7
SAMPLE_PID = make_pid(2, 2, bytes([5, 195, 7]), image_id=42)

SAMPLE_TREE = [
    (
        "dir",
        b"IMAGES",
        [
            ("file", b"LOGO", b"PID", SAMPLE_PID, 7),
            ("dir", b"SUB", [("file", b"A", b"TXT", b"hello", 8)]),
        ],
    ),
    ("file", b"README", b"TXT", b"read me", 3),
    ("dir", b"EMPTY", []),
]


@pytest.fixture
def build_rez():
    return make_rez


@pytest.fixture
def build_pid():
    return make_pid


@pytest.fixture
def sample_rez() -> bytes:
    return make_rez(SAMPLE_TREE)


@pytest.fixture
def sample_pid() -> bytes:
    return SAMPLE_PID


@pytest.fixture
def grey_palette() -> bytes:
    return bytes(channel for i in range(256) for channel in (i, i, i))
