import struct
from typing import Iterable

# DROPFILES: pFiles offset, POINT pt, fNC, fWide
DROPFILES_FORMAT = "<IiiII"
DROPFILES_SIZE = struct.calcsize(DROPFILES_FORMAT)


def pack_dropfiles(paths: Iterable[str]) -> bytes:
    """Build a ``CF_HDROP`` block: the header then a double-NUL-terminated UTF-16 list."""
    header = struct.pack(DROPFILES_FORMAT, DROPFILES_SIZE, 0, 0, 0, 1)
    names = "".join(f"{path}\0" for path in paths) + "\0"
    return header + names.encode("utf-16-le")
