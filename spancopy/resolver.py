from pathlib import Path


def resolve_relative_path(full_path: Path, roots) -> Path | None:
    """
    Return full_path relative to the first root that contains it, or None.

    Roots are checked in configured order, so with nested roots the first
    one listed wins. A path equal to a root has no remainder and does not
    resolve.
    """
    full_path = Path(full_path)
    for root in roots:
        try:
            rel_path = full_path.relative_to(root)
        except ValueError:
            continue
        if rel_path.parts:
            return rel_path
    return None


def destination_path(volume: Path, rel_path: Path) -> Path:
    return Path(volume) / rel_path
