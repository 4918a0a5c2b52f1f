"""
Unit Tests for Stream Helpers.
"""

import io
from pathlib import Path
from unittest.mock import patch

import pytest

from docpush.utils.io_helper import (
    copy_stream,
    read_stream_to_bytes,
    read_stream_to_string,
    write_to_temp_file,
)


class _FailingStream(io.RawIOBase):
    """Yields one chunk, then fails."""

    def __init__(self) -> None:
        self._sent = False

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        if self._sent:
            raise OSError("source went away")
        self._sent = True
        return b"partial"


class TestCopyStream:
    """Test cases for copy_stream."""

    def test_copies_everything(self) -> None:
        data = bytes(range(256)) * 100
        dst = io.BytesIO()

        assert copy_stream(io.BytesIO(data), dst, buffer_size=1000) == len(data)
        assert dst.getvalue() == data

    def test_empty_source(self) -> None:
        dst = io.BytesIO()
        assert copy_stream(io.BytesIO(), dst) == 0
        assert dst.getvalue() == b""


class TestReadStream:
    """Test cases for the read helpers."""

    def test_read_bytes(self) -> None:
        assert read_stream_to_bytes(io.BytesIO(b"abc")) == b"abc"

    def test_read_string_utf8(self) -> None:
        assert read_stream_to_string(io.BytesIO("naïve".encode("utf-8"))) == "naïve"

    def test_read_string_encoding(self) -> None:
        assert read_stream_to_string(io.BytesIO("é".encode("latin-1")), "latin-1") == "é"


class TestWriteToTempFile:
    """Test cases for write_to_temp_file."""

    def test_writes_content(self) -> None:
        path = write_to_temp_file(io.BytesIO(b"feed body"), suffix=".xml")
        try:
            assert path.name.startswith("docpush")
            assert path.suffix == ".xml"
            assert path.read_bytes() == b"feed body"
        finally:
            path.unlink()

    def test_failure_removes_partial_file(self, tmp_path: Path) -> None:
        with patch("tempfile.tempdir", str(tmp_path)):
            with pytest.raises(OSError, match="source went away"):
                write_to_temp_file(_FailingStream())

        assert list(tmp_path.iterdir()) == []
