"""Ampache protocol errors.

Every error carries the numeric code sent to the client, which doubles as the
HTTP status of the response.
"""


class AmpacheError(Exception):
    """Base exception for Ampache protocol failures."""

    code = 500

    def __init__(self, message: str, code: int = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


class InvalidLogin(AmpacheError):
    """Raised when a handshake or session token is rejected."""

    code = 401

    def __init__(self, message: str = "Invalid Login"):
        super().__init__(message)


class MissingParameter(AmpacheError):
    """Raised when a required request parameter is absent."""

    code = 400

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Required parameter '{name}' missing")


class UnsupportedType(AmpacheError):
    code = 400

    def __init__(self, entity_type: str):
        super().__init__(f"Unsupported type {entity_type}")


class UnsupportedFilter(AmpacheError):
    code = 400

    def __init__(self, filter_name: str):
        super().__init__(f"Unsupported filter {filter_name}")


class UnsupportedMode(AmpacheError):
    code = 400

    def __init__(self, mode: str):
        super().__init__(f"Mode '{mode}' is not supported")


class UnsupportedFormat(AmpacheError):
    code = 400

    def __init__(self, output_format: str):
        super().__init__(f"Format '{output_format}' is not supported")


class ActionNotSupported(AmpacheError):
    code = 405

    def __init__(self, action: str = None):
        self.action = action
        super().__init__("Action not supported")


class UnsupportedOperation(AmpacheError):
    """Raised for requests the server understands but refuses to serve."""

    code = 400


class EntityNotFound(AmpacheError):
    """Raised when a requested entity (or its file) does not exist for the user."""

    code = 404


class UnexpectedEntityType(AmpacheError):
    """Raised when a renderer is handed an entity it cannot represent."""

    code = 500
