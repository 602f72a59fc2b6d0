"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``kuvaajat.main`` maps each kind to a status code and
an ``{"error": message}`` body.
"""


class KuvaajatError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(KuvaajatError):
    """Malformed, missing or out-of-range input."""

    status_code = 400
    default_message = "Invalid request"


class AuthorizationError(KuvaajatError):
    """Role or ownership mismatch. The message never names the resource."""

    status_code = 403
    default_message = "Not permitted"


class NotFoundError(KuvaajatError):
    """Referenced entity is absent or of the wrong kind."""

    status_code = 404
    default_message = "Not found"


class ConflictError(KuvaajatError):
    """A conditional write lost against a concurrent change."""

    status_code = 409
    default_message = "Resource was modified by another request"


class StorageError(KuvaajatError):
    """Underlying record store operation failed."""

    status_code = 500
    default_message = "Internal server error"
