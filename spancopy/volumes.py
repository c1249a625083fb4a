import logging
from collections import deque
from pathlib import Path

import psutil

from spancopy.errors import NoVolumeAvailableError


def free_bytes(volume: Path) -> int:
    return psutil.disk_usage(str(volume)).free


def has_enough_space(volume: Path, required_bytes: int, buffer_bytes: int, free_space=free_bytes) -> bool:
    """False when the volume is too small, or when its free space cannot be read."""
    try:
        available = free_space(volume)
    except OSError as e:
        logging.warning(f"[VOLUME] Cannot read free space on {volume}, treating it as unusable: {e}")
        return False
    if required_bytes + buffer_bytes <= available:
        return True
    logging.warning(
        f"[VOLUME] Not enough space on {volume}: need {required_bytes + buffer_bytes} bytes "
        f"(including {buffer_bytes} buffer), {available} free"
    )
    return False


def is_usable_volume(volume: Path) -> bool:
    try:
        return volume.is_dir()
    except OSError:
        return False


class VolumeSource:
    """Supplies a mounted destination root when asked with a prompt."""

    def request_volume(self, prompt: str) -> Path:
        raise NotImplementedError


class ConsoleVolumeSource(VolumeSource):
    """
    Ask the operator on the console until they name an existing directory.

    With max_attempts set, gives up with NoVolumeAvailableError after that
    many unusable answers instead of asking forever.
    """

    def __init__(self, input_func=None, max_attempts: int | None = None):
        self.input_func = input_func or input
        self.max_attempts = max_attempts

    def request_volume(self, prompt: str) -> Path:
        attempts = 0
        while self.max_attempts is None or attempts < self.max_attempts:
            attempts += 1
            entry = self.input_func(f"{prompt}: ").strip().strip('"')
            if not entry:
                print("A destination path is required.")
                continue
            volume = Path(entry)
            if is_usable_volume(volume):
                return volume
            print(f"Not a mounted directory: {volume}")
        raise NoVolumeAvailableError(f"No usable volume after {attempts} attempts")


class QueuedVolumeSource(VolumeSource):
    """Hands out volumes from a fixed list, skipping ones that are not mounted."""

    def __init__(self, volumes):
        self.volumes = deque(Path(v) for v in volumes)
        self.prompts: list[str] = []

    def request_volume(self, prompt: str) -> Path:
        self.prompts.append(prompt)
        while self.volumes:
            volume = self.volumes.popleft()
            if is_usable_volume(volume):
                return volume
            logging.warning(f"[WARNING] Queued volume is not mounted, skipping: {volume}")
        raise NoVolumeAvailableError("Volume queue is exhausted")


def ensure_space(
        required_bytes: int,
        buffer_bytes: int,
        volume: Path,
        volume_source: VolumeSource,
        free_space=free_bytes,
) -> tuple[Path, bool]:
    """
    Return a volume that can hold required_bytes plus buffer_bytes.

    The current volume is returned unchanged when it has room. Otherwise a
    replacement is requested from volume_source, and requested again while
    the replacement is still too small. A volume whose free space cannot be
    read, such as one that was unplugged, is replaced the same way. The
    second value tells the caller whether destination paths must be
    recomputed. When the source gives up after a swap already happened,
    the error carries the last volume obtained in last_volume.
    """
    replaced = False
    while not has_enough_space(volume, required_bytes, buffer_bytes, free_space):
        try:
            volume = volume_source.request_volume(
                f"Destination is full or missing. Insert a new volume and enter its root path "
                f"(needs {required_bytes + buffer_bytes} bytes free)"
            )
        except NoVolumeAvailableError as e:
            if replaced:
                e.last_volume = volume
            raise
        logging.info(f"[VOLUME] Switched destination to {volume}")
        replaced = True
    return volume, replaced
