"""JSON-RPC success responses and subscription payloads."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from rpcwire.ids import JSONRPC_VERSION, Id, SubscriptionId, parse_id, parse_subscription_id, parse_version
from rpcwire.request import Notification


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def _require_object(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a JSON object, got {value!r}")
    return value


def _require(data: dict[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


@dataclass
class Response:
    """A successful JSON-RPC response object."""

    result: Any
    id: Id = None

    def to_json(self) -> str:
        """Serialise to compact JSON."""
        return _dumps({"jsonrpc": JSONRPC_VERSION, "result": self.result, "id": self.id})

    @classmethod
    def from_json(cls, text: str | bytes) -> Response:
        """Parse a successful response; raises ``ValueError`` when malformed."""
        data = _require_object(json.loads(text), "response")
        parse_version(_require(data, "jsonrpc"))
        result = _require(data, "result")
        return cls(result, parse_id(_require(data, "id")))

    def __str__(self) -> str:
        return self.to_json()


@dataclass
class SubscriptionPayload:
    """The ``params`` member of a subscription notification carrying a result."""

    subscription: SubscriptionId
    result: Any

    def to_dict(self) -> dict[str, Any]:
        """The JSON object form."""
        return {"subscription": self.subscription, "result": self.result}

    @classmethod
    def from_dict(cls, data: Any) -> SubscriptionPayload:
        """Build from a decoded JSON object."""
        data = _require_object(data, "subscription payload")
        subscription = parse_subscription_id(_require(data, "subscription"))
        return cls(subscription, _require(data, "result"))


@dataclass
class SubscriptionPayloadError:
    """The ``params`` member of a subscription notification carrying an error."""

    subscription: SubscriptionId
    error: Any

    def to_dict(self) -> dict[str, Any]:
        """The JSON object form."""
        return {"subscription": self.subscription, "error": self.error}

    @classmethod
    def from_dict(cls, data: Any) -> SubscriptionPayloadError:
        """Build from a decoded JSON object."""
        data = _require_object(data, "subscription error payload")
        subscription = parse_subscription_id(_require(data, "subscription"))
        return cls(subscription, _require(data, "error"))


def subscription_response(method: str, subscription: SubscriptionId, result: Any) -> str:
    """Serialise a subscription notification that carries ``result``."""
    parse_subscription_id(subscription)
    payload = SubscriptionPayload(subscription, result)
    return Notification(method, payload.to_dict()).to_json()