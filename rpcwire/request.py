"""JSON-RPC request, notification and invalid-request objects."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from rpcwire.ids import JSONRPC_VERSION, Id, parse_id, parse_version
from rpcwire.params import Params, params_to_json

_JSON_WS = " \t\n\r"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid number: {name}")


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _JSON_WS:
        pos += 1
    return pos


def _members(text: str | bytes, fields: tuple[str, ...]) -> dict[str, tuple[Any, str]]:
    """Decode a top-level JSON object, keeping each member's raw text too.

    Duplicates of the named ``fields`` are rejected; other members are kept
    (first occurrence wins) but otherwise ignored by callers.
    """
    if isinstance(text, (bytes, bytearray)):
        text = text.decode("utf-8")
    pos = _skip_ws(text, 0)
    if text[pos:pos + 1] != "{":
        raise ValueError("expected a JSON object")
    pos = _skip_ws(text, pos + 1)
    members: dict[str, tuple[Any, str]] = {}
    if text[pos:pos + 1] == "}":
        pos += 1
    else:
        while True:
            if text[pos:pos + 1] != '"':
                raise ValueError(f"expected a member name at position {pos}")
            key, pos = _DECODER.raw_decode(text, pos)
            pos = _skip_ws(text, pos)
            if text[pos:pos + 1] != ":":
                raise ValueError(f"expected ':' at position {pos}")
            start = _skip_ws(text, pos + 1)
            value, pos = _DECODER.raw_decode(text, start)
            if key in members:
                if key in fields:
                    raise ValueError(f"duplicate field `{key}`")
            else:
                members[key] = (value, text[start:pos])
            pos = _skip_ws(text, pos)
            sep = text[pos:pos + 1]
            if sep == ",":
                pos = _skip_ws(text, pos + 1)
            elif sep == "}":
                pos += 1
                break
            else:
                raise ValueError(f"expected ',' or '}}' at position {pos}")
    if _skip_ws(text, pos) != len(text):
        raise ValueError(f"trailing characters at position {pos}")
    return members


def _require(members: dict[str, tuple[Any, str]], key: str) -> tuple[Any, str]:
    try:
        return members[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


def _method(members: dict[str, tuple[Any, str]]) -> str:
    method, _ = _require(members, "method")
    if not isinstance(method, str):
        raise ValueError(f"invalid type: {method!r}, expected a string")
    return method


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


@dataclass
class Request:
    """An incoming JSON-RPC call; ``params`` holds the raw JSON text, if any."""

    method: str
    params: str | None = None
    id: Id = None

    @classmethod
    def from_json(cls, text: str | bytes) -> Request:
        """Parse a request object; raises ``ValueError`` when malformed."""
        members = _members(text, ("jsonrpc", "id", "method", "params"))
        parse_version(_require(members, "jsonrpc")[0])
        request_id = parse_id(_require(members, "id")[0])
        method = _method(members)
        params_value, params_raw = members.get("params", (None, None))
        return cls(method, None if params_value is None else params_raw, request_id)

    @property
    def parsed_params(self) -> Params:
        """The parameters wrapped for decoding."""
        return Params(self.params)

    def to_json(self) -> str:
        """Serialise with the raw parameters copied verbatim."""
        return (
            f'{{"jsonrpc":"{JSONRPC_VERSION}","id":{_dumps(self.id)},'
            f'"method":{_dumps(self.method)},'
            f'"params":{self.params if self.params is not None else "null"}}}'
        )


@dataclass
class InvalidRequest:
    """The id recovered from a request that is otherwise invalid."""

    id: Id

    @classmethod
    def from_json(cls, text: str | bytes) -> InvalidRequest:
        """Extract the id, ignoring every other member."""
        members = _members(text, ("id",))
        return cls(parse_id(_require(members, "id")[0]))


@dataclass
class Notification:
    """A request without an id; ``params`` holds the decoded value."""

    method: str
    params: Any = None

    @classmethod
    def from_json(cls, text: str | bytes) -> Notification:
        """Parse a notification; ``params`` must be present."""
        members = _members(text, ("jsonrpc", "method", "params"))
        parse_version(_require(members, "jsonrpc")[0])
        method = _method(members)
        params, _ = _require(members, "params")
        return cls(method, params)

    def to_json(self) -> str:
        """Serialise to compact JSON."""
        return _dumps({"jsonrpc": JSONRPC_VERSION, "method": self.method, "params": self.params})


def serialize_request(
    id: Id, method: str, params: Sequence[Any] | Mapping[str, Any] | None = None
) -> str:
    """Serialise an outgoing call; ``params`` is left out when ``None``."""
    parse_id(id)
    head = f'{{"jsonrpc":"{JSONRPC_VERSION}","id":{_dumps(id)},"method":{_dumps(method)}'
    if params is None:
        return head + "}"
    return f'{head},"params":{params_to_json(params)}}}'


def serialize_notification(
    method: str, params: Sequence[Any] | Mapping[str, Any] | None = None
) -> str:
    """Serialise an outgoing notification; ``params`` is left out when ``None``."""
    head = f'{{"jsonrpc":"{JSONRPC_VERSION}","method":{_dumps(method)}'
    if params is None:
        return head + "}"
    return f'{head},"params":{params_to_json(params)}}}'