from typing import Optional


class OrderEntryError(Exception):
    """Base error for order entry; the message is shown to the user as-is"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class OrderValidationError(OrderEntryError):
    """Raised when a draft fails a local check before any network call"""
    pass


class BackendError(OrderEntryError):
    """Raised when the trade backend answers with a non-success status"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class TransportError(OrderEntryError):
    """Raised when the request could not be completed or its response parsed"""

    def __init__(self, message: str = "An unknown error occurred"):
        super().__init__(message)
