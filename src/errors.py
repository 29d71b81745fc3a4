"""
Error taxonomy for the Communication Bridge.

Every subsystem reports problems locally: collaborator failures are raised
as one of the exceptions below and turned into a ``Notice`` by whoever
handles them, so the pairing and classification flow never crashes.
"""

import enum
from dataclasses import dataclass


class ErrorKind(enum.Enum):
    CAPABILITY_UNAVAILABLE = "capability-unavailable"
    PERMISSION_DENIED = "permission-denied"
    NO_MATCH = "no-match"
    INITIALIZATION_TIMEOUT = "initialization-timeout"
    TRANSIENT_OUTPUT_FAILURE = "transient-output-failure"


@dataclass(frozen=True)
class Notice:
    """A non-fatal, user-facing report raised by a subsystem."""
    kind: ErrorKind
    message: str


class BridgeError(Exception):
    """Base class for collaborator failures."""
    kind = None


class CapabilityUnavailableError(BridgeError):
    """Speech or tracking support is missing from the runtime environment."""
    kind = ErrorKind.CAPABILITY_UNAVAILABLE


class PermissionDeniedError(BridgeError):
    """The microphone or camera could not be opened."""
    kind = ErrorKind.PERMISSION_DENIED


class InitializationTimeoutError(BridgeError):
    """The hand tracker did not become ready within its budget."""
    kind = ErrorKind.INITIALIZATION_TIMEOUT


class SpeechOutputError(BridgeError):
    """A speech-output request could not be carried out."""
    kind = ErrorKind.TRANSIENT_OUTPUT_FAILURE


class InvalidTransitionError(ValueError):
    """An operation was requested in a state that does not accept it."""


def notice_from_error(error: BridgeError) -> Notice:
    """Wrap a collaborator failure as a notice."""
    return Notice(error.kind, str(error) or error.__class__.__name__)
