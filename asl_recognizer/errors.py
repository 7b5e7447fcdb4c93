"""
Exceptions raised by the recognition core.

Frames with no hand or no confident match are not errors; they yield None.
"""


class RecognizerError(Exception):
    """Base class for recognition errors."""


class PreconditionViolation(RecognizerError):
    """The caller broke a contract: session not started, or malformed input."""


class CollaboratorFailure(RecognizerError):
    """The landmark source failed to load or to detect hands."""
