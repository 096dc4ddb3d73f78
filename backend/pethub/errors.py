"""Domain exceptions raised by services and rendered by the API.

Each exception carries the HTTP status it maps to; the handlers in
`pethub.main` turn them into `{"message": ...}` JSON responses.
"""

from typing import Optional


class PetHubError(Exception):
    """Base class for errors with a client-facing message."""
    status_code = 500

    def __init__(self, message: str, headers: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.headers = headers


class InvalidInputError(PetHubError):
    status_code = 400


class AuthenticationError(PetHubError):
    status_code = 401


class PermissionDeniedError(PetHubError):
    status_code = 403


class NotFoundError(PetHubError):
    status_code = 404


class ConflictError(PetHubError):
    status_code = 409


class RateLimitedError(PetHubError):
    status_code = 429

    def __init__(self, message: str, retry_after: int):
        super().__init__(message, headers={"Retry-After": str(retry_after)})
        self.retry_after = retry_after
