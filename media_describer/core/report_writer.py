"""
CSV report of description records.

Rows are appended in completion order; each row is written and flushed under
a lock so rows from concurrent workers never interleave.
"""

import csv
import logging
import threading
from pathlib import Path
from typing import Optional, TextIO

from media_describer.errors import ReportError
from media_describer.core.models import DescriptionRecord

logger = logging.getLogger(__name__)


class ReportWriter:
    """Thread-safe CSV writer for DescriptionRecord rows."""

    def __init__(self, stream: TextIO, path: Optional[Path] = None):
        self._stream = stream
        self._writer = csv.writer(stream)
        self._lock = threading.Lock()
        self.path = path
        self.rows_written = 0

    @classmethod
    def create(cls, path: Path) -> "ReportWriter":
        """
        Create (or truncate) the report file.

        Raises:
            ReportError: If the file cannot be created
        """
        path = Path(path)
        try:
            stream = open(path, "w", newline="", encoding="utf-8")
        except OSError as e:
            raise ReportError(f"failed to create CSV file: {e}") from e
        return cls(stream, path=path)

    def write_record(self, record: DescriptionRecord) -> None:
        with self._lock:
            try:
                self._writer.writerow(record.as_row())
                self._stream.flush()
            except OSError as e:
                logger.error(f"failed to write to CSV: {e}")
                return
            self.rows_written += 1

    def close(self) -> None:
        with self._lock:
            if not self._stream.closed:
                self._stream.close()

    def __enter__(self) -> "ReportWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
