"""Helpers for byte streams used by transports and content handlers."""

import os
import tempfile
from pathlib import Path
from typing import BinaryIO

DEFAULT_BUFFER_SIZE = 8192


def copy_stream(src: BinaryIO, dst: BinaryIO, buffer_size: int = DEFAULT_BUFFER_SIZE) -> int:
    """Copy ``src`` to ``dst`` through a fixed buffer and flush. Returns bytes copied."""
    copied = 0
    while chunk := src.read(buffer_size):
        dst.write(chunk)
        copied += len(chunk)
    dst.flush()
    return copied


def read_stream_to_bytes(src: BinaryIO) -> bytes:
    return src.read()


def read_stream_to_string(src: BinaryIO, encoding: str = "utf-8") -> str:
    return read_stream_to_bytes(src).decode(encoding)


def write_to_temp_file(src: BinaryIO, suffix: str = ".tmp") -> Path:
    """
    Materialize ``src`` into a new temporary file.

    The caller owns the returned file and must delete it. If writing fails
    the partial file is removed before the error propagates.
    """
    fd, name = tempfile.mkstemp(prefix="docpush", suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as out:
            copy_stream(src, out)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return path
