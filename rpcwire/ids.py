"""Validation of JSON-RPC version markers, request ids and subscription ids."""

from __future__ import annotations

from typing import Any, Union

JSONRPC_VERSION = "2.0"

Id = Union[int, str, None]
"""A request id: ``None`` (null), an unsigned integer or a string."""

SubscriptionId = Union[int, str]
"""A subscription id: an unsigned integer or a string."""

_U64_MAX = 2**64 - 1


def _is_u64(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= _U64_MAX


def parse_version(value: Any) -> str:
    """Check that a decoded ``jsonrpc`` member is the string ``"2.0"``."""
    if not isinstance(value, str):
        raise ValueError(f'invalid type: {value!r}, expected a string "2.0"')
    if value != JSONRPC_VERSION:
        raise ValueError(f'invalid value: string {value!r}, expected a string "2.0"')
    return value


def parse_id(value: Any) -> Id:
    """Validate a decoded request id and return it unchanged."""
    if value is None or isinstance(value, str) or _is_u64(value):
        return value
    raise ValueError(f"data did not match any variant of Id: {value!r}")


def parse_subscription_id(value: Any) -> SubscriptionId:
    """Validate a decoded subscription id and return it unchanged."""
    if isinstance(value, str) or _is_u64(value):
        return value
    raise ValueError(f"data did not match any variant of SubscriptionId: {value!r}")