"""Exceptions raised by the document store."""


class WikiError(Exception):
    """Base exception for all wiki storage errors."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(message)


class InvalidPathError(WikiError, ValueError):
    """Raised when a page path tries to leave the storage root."""

    def __init__(self, path: str, reason: str = "invalid page path") -> None:
        self.reason = reason
        super().__init__(path, f"Invalid page path '{path}': {reason}")


class PageNotFoundError(WikiError):
    """Raised when a page does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(path, f"Page '{path}' not found")


class DocumentFormatError(WikiError, ValueError):
    """Raised when a stored document cannot be decoded."""

    def __init__(self, path: str, reason: str) -> None:
        self.reason = reason
        super().__init__(path, f"Page '{path}' is malformed: {reason}")


class StorageError(WikiError):
    """Raised when the filesystem fails on an operation expected to succeed."""

    def __init__(self, path: str, operation: str) -> None:
        self.operation = operation
        super().__init__(path, f"Failed to {operation} page '{path}'")
