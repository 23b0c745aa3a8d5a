"""
Request parameters of an Ampache call.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .errors import MissingParameter

TRUE_STRINGS = frozenset({"1", "true", "on", "yes"})


def validate_limit_or_offset(value: Any) -> Optional[int]:
    """Positive integers pass through; 0 and anything non-numeric mean "unset"."""
    text = str(value) if value is not None else ""
    if text.isdigit() and text.isascii():
        number = int(text)
        return number if number > 0 else None
    return None


def index_is_within_offset_and_limit(
    index: int, offset: Optional[int], limit: Optional[int]
) -> bool:
    offset = offset or 0  # missing offset is interpreted as 0
    return limit is None or offset <= index < offset + limit


def parse_bool(value: Any) -> bool:
    """Lenient boolean parsing: 1/true/on/yes (any case) are true."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_STRINGS


@dataclass
class ActionRequest:
    """One Ampache API call, with limit and offset already validated."""

    action: Optional[str] = None
    user: Optional[str] = None
    timestamp: Optional[str] = None
    auth: Optional[str] = None
    filter: Optional[str] = None
    exact: bool = False
    limit: Optional[int] = None
    offset: Optional[int] = None
    id: Optional[str] = None
    params: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "ActionRequest":
        return cls(
            action=params.get("action"),
            user=params.get("user"),
            timestamp=params.get("timestamp"),
            auth=params.get("auth"),
            filter=params.get("filter"),
            exact=parse_bool(params.get("exact")),
            limit=validate_limit_or_offset(params.get("limit")),
            offset=validate_limit_or_offset(params.get("offset")),
            id=params.get("id"),
            params=dict(params),
        )

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.params.get(name, default)

    def require(self, name: str) -> str:
        value = self.params.get(name)
        if value is None:
            raise MissingParameter(name)
        return value
