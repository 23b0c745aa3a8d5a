"""Library-specific exceptions for error handling."""


class LibraryError(Exception):
    """Base exception for library operations."""

    pass


class NotFoundError(LibraryError):
    """Raised when an entity does not exist or is not owned by the user."""

    def __init__(self, kind: str, entity_id=None, message: str = None):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(message or f"{kind} {entity_id} not found")
