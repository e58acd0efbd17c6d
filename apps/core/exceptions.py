"""
Domain errors surfaced by the service layer.

Each error carries a stable ``code`` so clients can tell "retry with a fresh
version" apart from "not allowed" and "not authenticated". The API layer
renders every ServiceError as ``{"detail": ..., "code": ...}`` with the
mapped HTTP status (see config/urls.py).
"""
from django.core.exceptions import ImproperlyConfigured


class ServiceError(Exception):
    status_code = 400
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticated(ServiceError):
    status_code = 401
    code = "not_authenticated"
    default_message = "Authentication required"


class Forbidden(ServiceError):
    status_code = 403
    code = "forbidden"
    default_message = "Permission denied"


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class VersionConflict(ServiceError):
    status_code = 412
    code = "version_conflict"
    default_message = "Version mismatch"


class PreconditionRequired(ServiceError):
    status_code = 428
    code = "precondition_required"
    default_message = "If-Match header is required"


class MalformedToken(ServiceError):
    status_code = 400
    code = "malformed_token"
    default_message = "Invalid ETag format"


class InvalidGrant(ServiceError):
    status_code = 400
    code = "invalid_grant"
    default_message = "Invalid share request"


class InvalidInput(ServiceError):
    status_code = 400
    code = "invalid_input"
    default_message = "Invalid request"


class InvalidCredential(Exception):
    """
    Session token rejected (bad signature, expired, wrong issuer, garbled).

    Never reaches the client: the identity middleware absorbs it and leaves
    the request anonymous.
    """


class ConfigurationError(ImproperlyConfigured):
    """Fatal misconfiguration detected at startup."""
