"""
Ampache domain module.

Implements the Ampache remote API: handshake and sessions, action dispatch,
response rendering and the XML/JSON wire formats.
"""

from .dispatcher import (
    ACTIONS,
    API_VERSION,
    BinaryPayload,
    Dispatcher,
    FilePayload,
)
from .errors import AmpacheError, InvalidLogin
from .params import ActionRequest
from .renderer import ActionUrlBuilder
from .sessions import SessionStore, UserKeyStore
from .wire import error_content, prepare_for_json, prepare_for_xml, to_xml

__all__ = [
    "ACTIONS",
    "API_VERSION",
    "ActionRequest",
    "ActionUrlBuilder",
    "AmpacheError",
    "BinaryPayload",
    "Dispatcher",
    "FilePayload",
    "InvalidLogin",
    "SessionStore",
    "UserKeyStore",
    "error_content",
    "prepare_for_json",
    "prepare_for_xml",
    "to_xml",
]
