# hairscan/errors.py


class HairScanError(Exception):
    """Base class for errors reported back to API callers."""


class InvalidInput(HairScanError):
    """Missing or malformed request fields. Never retried."""


class UpstreamError(HairScanError):
    """The analysis provider was unreachable, timed out, or sent an unusable reply."""

    def __init__(self, message: str, timeout: bool = False):
        super().__init__(message)
        self.timeout = timeout


class DataLoadWarning(UserWarning):
    """The practitioner dataset could not be read; a placeholder record is served."""
