"""
exceptions.py - Error types raised below the HTTP layer.

Route handlers translate these into HTTPExceptions; nothing here knows
about status codes.
"""


class JournalError(Exception):
    """Base class for all journal service errors."""


class AuthenticationError(JournalError):
    """Bearer credential missing, malformed, expired or otherwise rejected."""


class NoRecentEntriesError(JournalError):
    """A recap was requested but the user wrote nothing in the recap window."""


class RecapGenerationError(JournalError):
    """The generative model failed, timed out or returned no usable text."""
