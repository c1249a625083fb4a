import argparse
import logging
import sys
from pathlib import Path

from tqdm.contrib.logging import logging_redirect_tqdm

from spancopy.config import load_config
from spancopy.errors import SpanCopyError
from spancopy.orchestrator import run_copy
from spancopy.progress import TqdmProgress
from spancopy.volumes import ConsoleVolumeSource

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(log_file: Path | None = None, verbose: bool = False) -> None:
    handlers = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spancopy",
        description="Copy source trees onto removable volumes, prompting for a new volume when one fills up",
    )
    parser.add_argument("sources", nargs="+", help="Source root directories, highest priority first")
    parser.add_argument("-d", "--destination", help="Initial destination volume root (prompted for if omitted)")
    parser.add_argument("--safety-buffer-bytes", type=int, help="Free space to leave on each volume (default 100 MB)")
    parser.add_argument("--chunk-size-bytes", type=int, help="Copy block size (default 1 MB)")
    parser.add_argument("--log-path", help="CSV result log, rewritten every run (default CopyLog.csv)")
    parser.add_argument("--exclude-dir", action="append", default=[], help="Directory name to skip (repeatable)")
    parser.add_argument("--exclude-name", action="append", default=[], help="File name to skip (repeatable)")
    parser.add_argument("--exclude-ext", action="append", default=[], help="File extension to skip (repeatable)")
    parser.add_argument("--max-prompts", type=int,
                        help="Give up after this many unusable volume answers instead of asking forever")
    parser.add_argument("--no-progress", action="store_true", help="Hide progress bars")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every queued and excluded file")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            [Path(s).absolute() for s in args.sources],
            safety_buffer_bytes=args.safety_buffer_bytes,
            chunk_size_bytes=args.chunk_size_bytes,
            log_path=args.log_path,
            excluded_dirnames=args.exclude_dir,
            excluded_filenames=args.exclude_name,
            excluded_extensions=args.exclude_ext,
        )
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_path.with_suffix(".log"), verbose=args.verbose)
    logging.info("Started spancopy")

    progress = TqdmProgress(disable=args.no_progress)
    volume_source = ConsoleVolumeSource(max_attempts=args.max_prompts)
    try:
        with logging_redirect_tqdm():
            run_copy(config, volume_source, progress=progress, destination=args.destination)
    except SpanCopyError as e:
        logging.error(f"[FATAL] {e}")
        return 1
    except KeyboardInterrupt:
        logging.warning("[WARNING] Interrupted by operator")
        return 130
    finally:
        progress.close()

    logging.info("Completed copy.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
