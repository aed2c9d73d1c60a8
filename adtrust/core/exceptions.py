"""Errors raised by the directory trust core."""


class ActiveDirectoryError(Exception):
    """Base class for all directory related errors."""


class ConfigurationError(ActiveDirectoryError):
    """Directory lookup is enabled but connection settings are missing."""


class TrustViolation(ActiveDirectoryError):
    """Request came from a source that may not assert an identity."""


class InvalidArgument(ActiveDirectoryError, ValueError):
    """Empty or malformed input (account name, group, user list)."""


class DirectoryUnavailable(ActiveDirectoryError):
    """The directory could not be reached or answered with an error."""


class NotFound(ActiveDirectoryError):
    """The directory answered but the requested object does not exist."""
