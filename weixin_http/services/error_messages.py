"""
Error code to message lookup.

Used when an error envelope carries an ``errcode`` but no ``errmsg``.
"""

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

KNOWN_ERRORS: Mapping[int, str] = {
    -1: "system busy",
    40001: "invalid credential",
    40002: "invalid grant_type",
    40007: "invalid media_id",
    40013: "invalid appid",
    40029: "invalid code",
    41001: "access_token missing",
    42001: "access_token expired",
    45009: "api freq out of limit",
    46001: "media data missing",
}


@runtime_checkable
class ErrorMessageLookup(Protocol):
    """Turns a platform error code into a human-readable message."""

    def describe(self, code: int) -> str: ...


class DefaultErrorMessages:
    """Lookup backed by a mapping, ``KNOWN_ERRORS`` unless one is given."""

    def __init__(self, messages: Mapping[int, str] | None = None) -> None:
        self._messages = dict(KNOWN_ERRORS if messages is None else messages)

    def describe(self, code: int) -> str:
        return self._messages.get(code, f"unknown error {code}")
