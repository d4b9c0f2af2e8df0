class ClubHubError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(ClubHubError):
    status_code = 401


class ValidationError(ClubHubError):
    status_code = 400


class NotFoundError(ClubHubError):
    status_code = 404


class ConflictError(ClubHubError):
    status_code = 409


class BackendError(ClubHubError):
    """A configured database could not complete a call.

    Reads and writes both propagate it; callers may retry.
    """

    status_code = 503
    retryable = True
