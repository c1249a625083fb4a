import csv
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

HEADER = ["Status", "RelativePath", "SourcePath", "Destination", "SizeBytes", "Timestamp"]
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class CopyStatus(Enum):
    COPIED = "Copied"
    SKIPPED_EXISTING = "Skipped"
    SKIPPED_NO_RELATIVE_PATH = "Skipped (NoRelPath)"
    FAILED = "Failed"


@dataclass
class CopyOutcome:
    status: CopyStatus
    source: Path
    size: int
    relative_path: Path | None = None
    destination: Path | None = None
    error: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def as_row(self) -> list:
        return [
            self.status.value,
            "" if self.relative_path is None else str(self.relative_path),
            str(self.source),
            "" if self.destination is None else str(self.destination),
            self.size,
            self.timestamp.strftime(TIMESTAMP_FORMAT),
        ]


class ResultLog:
    """
    Append-only CSV record of every file outcome for one run.

    Opening truncates the file and writes the header, so logs never
    accumulate across runs. Every row is flushed as soon as it is written.
    Paths that are not valid UTF-8 are written with backslash escapes.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._file = None
        self._writer = None

    def open(self) -> "ResultLog":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "w", newline="", encoding="utf-8", errors="backslashreplace")
        self._writer = csv.writer(self._file)
        self._writer.writerow(HEADER)
        self._file.flush()
        return self

    def record(self, outcome: CopyOutcome) -> None:
        if self._file is None:
            logging.error(f"[ERROR] Result log {self.path} is closed, dropping result for {outcome.source}")
            return
        try:
            self._writer.writerow(outcome.as_row())
            self._file.flush()
        except (OSError, ValueError) as e:
            logging.error(f"[ERROR] Could not write result for {outcome.source} to {self.path}: {e}")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None

    def __enter__(self):
        if self._file is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
