"""
Tests for scalar persistence.
"""

import pytest

from gatescope.core.errors import PersistenceFailure
from gatescope.core.persistence import ScalarFileWriter


class TestScalarFileWriter:
    """Tests for the single-value text file."""

    def test_write(self, tmp_path):
        """The value is written as plain text."""
        path = tmp_path / "value.txt"

        ScalarFileWriter(path).write(0.125)

        assert path.read_text(encoding="utf-8") == "0.125"

    def test_overwrite(self, tmp_path):
        """Each write replaces the previous value completely."""
        path = tmp_path / "value.txt"
        writer = ScalarFileWriter(path)

        writer.write(123.456789)
        writer.write(0.5)

        assert path.read_text(encoding="utf-8") == "0.5"
        assert writer.writes == 2

    def test_creates_directory(self, tmp_path):
        """Missing parent directories are created."""
        path = tmp_path / "a" / "b" / "value.txt"

        ScalarFileWriter(path).write(1.0)

        assert path.exists()

    def test_read(self, tmp_path):
        """read() returns the last value or None."""
        writer = ScalarFileWriter(tmp_path / "value.txt")

        assert writer.read() is None
        writer.write(2.75)
        assert writer.read() == 2.75

    def test_write_failure(self, tmp_path):
        """OS errors are raised as PersistenceFailure."""
        # A directory cannot be written as a file
        writer = ScalarFileWriter(tmp_path)

        with pytest.raises(PersistenceFailure) as info:
            writer.write(1.0)

        assert isinstance(info.value.__cause__, OSError)
        assert writer.writes == 0
