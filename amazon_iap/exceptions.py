"""
Exception Classes - Strongly typed exception hierarchy.

NO DICTIONARIES - All exceptions have typed attributes.
"""


class ReceiptValidationError(Exception):
    """Base exception for all receipt validation errors."""

    pass


class TransportError(ReceiptValidationError):
    """Raised when the RVS endpoint could not be reached (timeout, DNS, TLS, refused)."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Transport error: {detail}")


class ApplicationRejection(ReceiptValidationError):
    """Raised when RVS answers with a non-2xx status.

    The rejection is definitive (bad receipt, unknown user, invalid secret),
    not transient. ``message`` is exactly what RVS returned and may be empty
    when the error body could not be decoded.
    """

    def __init__(self, message: str, status_code: int, status: bool = False) -> None:
        self.message = message
        self.status_code = status_code
        self.status = status
        super().__init__(message or f"Receipt rejected with HTTP {status_code}")


class DecodeError(ReceiptValidationError):
    """Raised when a 2xx response body does not match the receipt shape."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Decode error: {detail}")
