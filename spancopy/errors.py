class SpanCopyError(Exception):
    """Base class for run-level errors."""


class NoSourceFilesError(SpanCopyError):
    """Nothing was discovered under any existing source root."""


class NoVolumeAvailableError(SpanCopyError):
    """A bounded volume source ran out of usable destination volumes."""

    # Last volume handed out before giving up, when a swap had already happened.
    last_volume = None


class ResultLogError(SpanCopyError):
    """The result log could not be opened for this run."""
