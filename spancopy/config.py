import os
from dataclasses import dataclass, field
from pathlib import Path

SAFETY_BUFFER_BYTES = 100 * 1024**2  # 100 MB
CHUNK_SIZE_BYTES = 1024**2  # 1 MB
LOG_PATH = "CopyLog.csv"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass(frozen=True)
class CopyConfig:
    source_roots: tuple[Path, ...]
    safety_buffer_bytes: int = SAFETY_BUFFER_BYTES
    chunk_size_bytes: int = CHUNK_SIZE_BYTES
    log_path: Path = Path(LOG_PATH)
    excluded_dirnames: frozenset[str] = field(default_factory=frozenset)
    excluded_filenames: frozenset[str] = field(default_factory=frozenset)
    excluded_extensions: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if self.chunk_size_bytes <= 0:
            raise ValueError(f"chunk size must be positive, got {self.chunk_size_bytes}")
        if self.safety_buffer_bytes < 0:
            raise ValueError(f"safety buffer cannot be negative, got {self.safety_buffer_bytes}")


def load_config(
        source_roots,
        safety_buffer_bytes: int | None = None,
        chunk_size_bytes: int | None = None,
        log_path=None,
        excluded_dirnames=(),
        excluded_filenames=(),
        excluded_extensions=(),
) -> CopyConfig:
    """
    Build a CopyConfig. Explicit arguments win, then SPANCOPY_* environment
    variables, then the module defaults.
    """
    if safety_buffer_bytes is None:
        safety_buffer_bytes = _env_int("SPANCOPY_SAFETY_BUFFER_BYTES", SAFETY_BUFFER_BYTES)
    if chunk_size_bytes is None:
        chunk_size_bytes = _env_int("SPANCOPY_CHUNK_SIZE_BYTES", CHUNK_SIZE_BYTES)
    if log_path is None:
        log_path = os.getenv("SPANCOPY_LOG_PATH") or LOG_PATH

    extensions = set()
    for ext in excluded_extensions:
        ext = ext.lower()
        extensions.add(ext if ext.startswith(".") else f".{ext}")

    return CopyConfig(
        source_roots=tuple(Path(root) for root in source_roots),
        safety_buffer_bytes=safety_buffer_bytes,
        chunk_size_bytes=chunk_size_bytes,
        log_path=Path(log_path),
        excluded_dirnames=frozenset(name.lower() for name in excluded_dirnames),
        excluded_filenames=frozenset(name.lower() for name in excluded_filenames),
        excluded_extensions=frozenset(extensions),
    )
