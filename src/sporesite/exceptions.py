"""Library exceptions for the sporesite package."""


class SporeSiteError(Exception):
    """Base exception for sporesite library."""

    pass


class UnknownCollectionKeyError(SporeSiteError):
    """Raised when a collection key or collection id is not in the registry."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Unknown collection key: {key}")


class InvalidAtUriError(SporeSiteError):
    """Raised when a string cannot be parsed as an at:// record URI."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Invalid AT URI: {value!r}")


class RecordStoreError(SporeSiteError):
    """Raised when the remote record store fails a read or write."""

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        self.operation = operation
        self.status_code = status_code
        self.error_code = error_code
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"Record store {operation} failed{status}: {message}")


class NotAuthenticatedError(RecordStoreError):
    """Raised when a write is attempted without an authenticated session."""

    def __init__(self, operation: str) -> None:
        super().__init__(operation, "no authenticated session")


__all__ = [
    "SporeSiteError",
    "UnknownCollectionKeyError",
    "InvalidAtUriError",
    "RecordStoreError",
    "NotAuthenticatedError",
]
