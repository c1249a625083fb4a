import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from spancopy.config import CopyConfig
from spancopy.copier import already_copied, stream_copy
from spancopy.errors import NoSourceFilesError, NoVolumeAvailableError, ResultLogError
from spancopy.progress import OVERALL_LABEL, NullProgress, ProgressReporter, percent_complete
from spancopy.resolver import destination_path, resolve_relative_path
from spancopy.results import CopyOutcome, CopyStatus, ResultLog
from spancopy.volumes import VolumeSource, ensure_space, free_bytes, is_usable_volume


@dataclass
class FileRecord:
    path: Path
    size: int


@dataclass
class RunSummary:
    counts: Counter = field(default_factory=Counter)
    volumes: list[Path] = field(default_factory=list)

    def add(self, outcome: CopyOutcome) -> None:
        self.counts[outcome.status] += 1

    @property
    def total(self) -> int:
        return sum(self.counts.values())


def should_exclude_file(file_path: Path, config: CopyConfig) -> bool:
    if file_path.name.lower() in config.excluded_filenames:
        logging.debug(f"[SKIP] Excluded filename: {file_path}")
        return True
    if file_path.suffix.lower() in config.excluded_extensions:
        logging.debug(f"[SKIP] Excluded extension: {file_path}")
        return True
    return False


def discover_files(config: CopyConfig) -> list[FileRecord]:
    """Walk every existing source root and collect its files with their sizes."""
    records = []
    for source in config.source_roots:
        if not source.is_dir():
            logging.warning(f"[WARNING] Source root does not exist, skipping: {source}")
            continue
        logging.info(f"Walking source directory: {source}")
        for root, dirs, files in os.walk(source):
            dirs[:] = [d for d in dirs if d.lower() not in config.excluded_dirnames]
            root_path = Path(root)
            for name in files:
                file_path = root_path / name
                if should_exclude_file(file_path, config):
                    continue
                try:
                    size = file_path.stat().st_size
                except OSError as e:
                    logging.warning(f"[ERROR] Skipping unreadable file: {file_path} - {e}")
                    continue
                logging.debug(f"[QUEUE] {file_path}")
                records.append(FileRecord(file_path, size))
    return records


def copy_one(
        record: FileRecord,
        volume: Path,
        config: CopyConfig,
        volume_source: VolumeSource,
        progress: ProgressReporter,
        free_space=free_bytes,
) -> tuple[CopyOutcome, Path]:
    """
    Take one file through resolve, skip check, space check and copy.

    Returns the outcome and the volume that is current afterwards, which
    differs from the one passed in when the space check swapped volumes.
    """
    rel_path = resolve_relative_path(record.path, config.source_roots)
    if rel_path is None:
        logging.warning(f"[SKIP] No source root contains {record.path}")
        return CopyOutcome(CopyStatus.SKIPPED_NO_RELATIVE_PATH, record.path, record.size), volume

    target_path = destination_path(volume, rel_path)
    if already_copied(target_path, record.size):
        logging.info(f"[SKIP] Already copied: {record.path}")
        return CopyOutcome(CopyStatus.SKIPPED_EXISTING, record.path, record.size, rel_path, target_path), volume

    def failed(error, target):
        logging.error(f"[ERROR] Failed to copy {record.path} ({rel_path}) -> {target}: {error}")
        return CopyOutcome(CopyStatus.FAILED, record.path, record.size, rel_path, target, error=str(error))

    try:
        volume, replaced = ensure_space(
            record.size, config.safety_buffer_bytes, volume, volume_source, free_space
        )
    except NoVolumeAvailableError as e:
        if e.last_volume is None:
            return failed(e, target_path), volume
        return failed(e, destination_path(e.last_volume, rel_path)), e.last_volume
    except OSError as e:
        return failed(e, target_path), volume
    if replaced:
        target_path = destination_path(volume, rel_path)

    try:
        target_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return failed(e, target_path), volume

    result = stream_copy(
        record.path, target_path, record.size, config.chunk_size_bytes, progress, label=str(rel_path)
    )
    if not result.ok:
        return failed(result.error, target_path), volume

    try:
        copied_size = target_path.stat().st_size
    except OSError as e:
        return failed(e, target_path), volume
    if copied_size != record.size:
        return failed(f"size mismatch: expected {record.size} bytes, wrote {copied_size}", target_path), volume

    logging.info(f"[COPY] {record.path} -> {target_path}")
    return CopyOutcome(CopyStatus.COPIED, record.path, record.size, rel_path, target_path), volume


def run_copy(
        config: CopyConfig,
        volume_source: VolumeSource,
        progress: ProgressReporter | None = None,
        records: list[FileRecord] | None = None,
        destination: Path | None = None,
        free_space=free_bytes,
) -> RunSummary:
    """
    Copy every discovered file onto the current destination volume.

    Raises NoSourceFilesError before touching any destination when there is
    nothing to copy, and ResultLogError when the result log cannot be
    opened. Otherwise every file ends up with exactly one row in the result
    log, and a failure on one file never stops the run. If no initial volume
    can be obtained, every file is logged as failed and the
    NoVolumeAvailableError is re-raised.
    """
    progress = progress or NullProgress()
    if records is None:
        logging.info(f"Scanning sources: {[str(s) for s in config.source_roots]}")
        records = discover_files(config)
    if not records:
        raise NoSourceFilesError(
            f"No files found under any source root: {[str(s) for s in config.source_roots]}"
        )
    logging.info(f"Total files to evaluate: {len(records)}")

    try:
        result_log = ResultLog(config.log_path).open()
    except OSError as e:
        raise ResultLogError(f"Could not open result log {config.log_path}: {e}") from e

    summary = RunSummary()
    with result_log:
        try:
            volume = initial_volume(volume_source, destination)
        except NoVolumeAvailableError as e:
            logging.error(f"[ERROR] No destination volume, nothing will be copied: {e}")
            for record in records:
                outcome = unplaced_outcome(record, config, e)
                result_log.record(outcome)
                summary.add(outcome)
            log_summary(summary, config.log_path)
            raise
        logging.info(f"[VOLUME] Copying to {volume}")
        summary.volumes.append(volume)

        for index, record in enumerate(records, 1):
            outcome, volume = copy_one(record, volume, config, volume_source, progress, free_space)
            if volume != summary.volumes[-1]:
                summary.volumes.append(volume)
            result_log.record(outcome)
            summary.add(outcome)
            progress.update(OVERALL_LABEL, percent_complete(index, len(records)))
        progress.complete(OVERALL_LABEL)

    log_summary(summary, config.log_path)
    return summary


def initial_volume(volume_source: VolumeSource, destination: Path | None) -> Path:
    if destination is not None and is_usable_volume(Path(destination)):
        return Path(destination)
    if destination is not None:
        logging.warning(f"[VOLUME] Destination is not a mounted directory: {destination}")
    return volume_source.request_volume("Enter the destination volume root path")


def unplaced_outcome(record: FileRecord, config: CopyConfig, error: Exception) -> CopyOutcome:
    """Outcome for a file when no destination volume was ever obtained."""
    rel_path = resolve_relative_path(record.path, config.source_roots)
    if rel_path is None:
        return CopyOutcome(CopyStatus.SKIPPED_NO_RELATIVE_PATH, record.path, record.size)
    return CopyOutcome(CopyStatus.FAILED, record.path, record.size, rel_path, error=str(error))


def log_summary(summary: RunSummary, log_path: Path) -> None:
    logging.info("===== Copy Summary =====")
    for status in CopyStatus:
        logging.info(f"{status.value}: {summary.counts[status]}")
    logging.info(f"Volumes used: {', '.join(str(v) for v in summary.volumes)}")
    logging.info(f"Result log: {log_path}")
