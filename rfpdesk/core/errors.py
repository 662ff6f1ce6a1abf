"""Exception taxonomy shared by all services.

Services raise these; callers (HTTP layer, CLI, jobs) decide how to surface
them. Nothing here is retried automatically.
"""


class RfpDeskError(Exception):
    """Base exception for rfpdesk service errors."""

    pass


class ValidationError(RfpDeskError):
    """Malformed or out-of-range input. Raised before any write."""

    pass


class NotFoundError(RfpDeskError):
    """Referenced record does not exist."""

    pass


class InvalidStateError(RfpDeskError):
    """Illegal lifecycle transition for the record's current status."""

    def __init__(self, message: str, current_status: str | None = None):
        self.current_status = current_status
        super().__init__(message)


class ImmutableStateError(InvalidStateError):
    """Mutation attempted on a record in a terminal status."""

    pass


class ConcurrentModificationError(RfpDeskError):
    """Record changed since it was read; caller should re-read and retry."""

    def __init__(self, entity: str, entity_id: int, expected_version: int | None = None):
        self.entity = entity
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"{entity} {entity_id} was modified concurrently"
            + (f" (expected version {expected_version})" if expected_version is not None else "")
        )


class TokenExpiredError(RfpDeskError):
    """Single-use token exists and is unused, but its expiry has passed."""

    pass


class TokenInvalidError(RfpDeskError):
    """Token is unknown, of the wrong type, or already used."""

    pass


class AuthenticationError(RfpDeskError):
    """Login or session check failed.

    The message is deliberately uniform; the specific cause only goes to logs.
    """

    MESSAGE = "Invalid credentials"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.MESSAGE)
