"""Error types raised by the document store and document service.

Each error carries the HTTP status it maps to and a message that is safe to
return to clients. Operational failures (5xx) keep their internal details in
the exception chain for logging only.
"""

__all__ = [
    "WRITE_FAILURE_MESSAGE",
    "READ_FAILURE_MESSAGE",
    "DocumentError",
    "InvalidLengthError",
    "DocumentConflictError",
    "KeyGenerationExhaustedError",
    "DocumentNotFoundError",
    "BackendFailureError",
]

WRITE_FAILURE_MESSAGE = "Error adding document"
READ_FAILURE_MESSAGE = "Error retrieving document"


class DocumentError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)


class InvalidLengthError(DocumentError):
    """Submitted content is empty or longer than the configured maximum."""

    status_code = 400
    message = "Document exceeds maximum length."

    def __init__(self, length: int, max_length: int) -> None:
        self.length = length
        self.max_length = max_length
        if length == 0:
            self.message = "Document is empty."
        super().__init__(f"content length {length} outside 1..{max_length}")


class DocumentConflictError(DocumentError):
    """Key already holds a document. Handled inside the key retry loop."""

    status_code = 409
    message = "Key already in use"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"key {key!r} already exists")


class KeyGenerationExhaustedError(DocumentError):
    status_code = 500
    message = WRITE_FAILURE_MESSAGE

    def __init__(self, attempts: int, key_length: int) -> None:
        self.attempts = attempts
        self.key_length = key_length
        super().__init__(f"no free key after {attempts} attempts (last key length {key_length})")


class DocumentNotFoundError(DocumentError):
    status_code = 404
    message = "Document not found"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"document {key!r} not found")


class BackendFailureError(DocumentError):
    """I/O or network failure inside a store backend.

    The document service replaces ``message`` with the write or read
    failure text for the path the error surfaced on.
    """

    status_code = 500
    message = "Error accessing document storage"
