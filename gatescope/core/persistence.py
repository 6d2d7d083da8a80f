"""
Scalar persistence.

Keeps the latest per-block value in a small text file that other
programs can poll. The file holds exactly one number, no delimiter.
"""

from pathlib import Path
import logging

from .errors import PersistenceFailure

log = logging.getLogger("ScalarFileWriter")


class ScalarFileWriter:
    """Overwrites a fixed file with the latest scalar value."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.writes = 0

    def write(self, value: float) -> None:
        """
        Replace the file contents with str(value), UTF-8 encoded.

        Raises:
            PersistenceFailure: File could not be written
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(str(float(value)), encoding="utf-8")
        except OSError as exc:
            raise PersistenceFailure(f"Could not write {self.path}: {exc}") from exc
        self.writes += 1

    def read(self) -> float | None:
        """Last persisted value, or None if nothing was written yet."""
        if not self.path.exists():
            return None
        text = self.path.read_text(encoding="utf-8").strip()
        return float(text) if text else None
