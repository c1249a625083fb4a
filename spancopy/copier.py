import logging
from dataclasses import dataclass
from pathlib import Path

from spancopy.progress import NullProgress, ProgressReporter, percent_complete


@dataclass
class TransferResult:
    bytes_copied: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def already_copied(destination: Path, size: int) -> bool:
    """
    Treat an existing destination of identical size as already transferred.

    Size is the only signal; content is never read.
    """
    try:
        return destination.is_file() and destination.stat().st_size == size
    except OSError as e:
        logging.warning(f"[WARNING] Could not stat existing destination {destination}: {e}")
        return False


def stream_copy(
        source: Path,
        destination: Path,
        expected_size: int,
        chunk_size: int,
        progress: ProgressReporter | None = None,
        label: str | None = None,
) -> TransferResult:
    """
    Copy source to destination in chunks of chunk_size bytes.

    The destination is created or truncated. Progress for label is updated
    after every chunk and completed once the loop ends, on success or error.
    A read or write error returns a failed result and leaves the partial
    destination on disk.
    """
    progress = progress or NullProgress()
    label = label or str(source)
    copied = 0
    try:
        with open(source, "rb") as src, open(destination, "wb") as dst:
            buffer = bytearray(chunk_size)
            view = memoryview(buffer)
            while True:
                read = src.readinto(buffer)
                if not read:
                    break
                dst.write(view[:read])
                copied += read
                progress.update(label, percent_complete(copied, expected_size))
    except OSError as e:
        logging.error(f"[ERROR] Transfer failed after {copied} bytes: {source} -> {destination} - {e}")
        return TransferResult(copied, error=str(e))
    finally:
        progress.complete(label)
    return TransferResult(copied)
