"""
Error taxonomy for the CoMapeo configuration toolkit.

Format and parse errors abort the current import. Shape irregularities are
recovered locally and only surface as exceptions in strict mode.
"""

from typing import Optional


class ComapeoConfigError(Exception):
    """Base class for all toolkit errors."""


class ArchiveFormatError(ComapeoConfigError):
    """The container bytes are not a valid archive of the claimed kind."""

    def __init__(self, message: str, entry: Optional[str] = None):
        self.entry = entry
        if entry:
            message = f"{message} (entry: {entry})"
        super().__init__(message)


class ConfigParseError(ComapeoConfigError):
    """A located JSON entry could not be parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not parse {path}: {reason}")


class RemoteFetchError(ComapeoConfigError):
    """A network request for remote catalogs or builds failed or timed out."""


class ImportCancelled(ComapeoConfigError):
    """An in-flight decode was cancelled through its cancellation token."""


class ConversionDegradedError(ComapeoConfigError):
    """Raised in strict mode instead of silently recovering a shape irregularity."""

    def __init__(self, notice):
        self.notice = notice
        super().__init__(str(notice))


class StorageError(ComapeoConfigError):
    """The shared configuration store rejected an operation."""
