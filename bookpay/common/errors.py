"""Error taxonomy shared by the gateway handlers.

Each error carries the HTTP status it maps to at the handler boundary.
"""


class GatewayError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(GatewayError):
    """A required field is missing or malformed."""

    status_code = 400


class NotFound(GatewayError):
    """The referenced entity has no directory entry."""

    status_code = 404


class ExternalServiceError(GatewayError):
    """The processor or the store failed; message is passed through."""

    status_code = 500


class PaymentProcessorError(ExternalServiceError):
    pass


class DirectoryError(ExternalServiceError):
    pass


def require(**fields) -> None:
    """Raise `InvalidRequest` naming every field that is None or empty."""

    missing = [name for name, value in fields.items() if value is None or value == ""]
    if missing:
        raise InvalidRequest(f"missing required fields: {', '.join(missing)}")
