"""Error taxonomy shared by the rating, cleaning and status services.

Every error carries a stable ``kind`` string so the HTTP layer (and any
other caller) can branch on it without matching message text.
"""


class TrackerError(Exception):
    """Base class for all expected, caller-visible failures."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TrackerError, ValueError):
    """Malformed input: score out of range, unknown problem code, bad page."""

    kind = "validation"


class NotFound(TrackerError):
    """Referenced toilet, rating or task does not exist (or is inactive)."""

    kind = "not_found"


class Conflict(TrackerError):
    """The toilet already has an active cleaning task."""

    kind = "conflict"


class Forbidden(TrackerError):
    """Caller is not allowed to act on the target (not the assignee, not admin)."""

    kind = "forbidden"


class InvalidState(TrackerError):
    """Transition attempted from a state that does not permit it."""

    kind = "invalid_state"
