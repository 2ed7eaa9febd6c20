"""Incoming JSON-RPC request parameters and serialisation of outgoing ones."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from rpcwire.error import InvalidParamsError

_JSON_WS = " \t\n\r"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid number: {name}")


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


def _loads(text: str) -> Any:
    value, end = _DECODER.raw_decode(text, len(text) - len(text.lstrip(_JSON_WS)))
    if text[end:].strip(_JSON_WS):
        raise ValueError(f"trailing characters at position {end}")
    return value


@dataclass(frozen=True)
class Params:
    """Raw JSON parameters of an incoming request; ``None`` when absent."""

    raw: str | None = None

    def __post_init__(self) -> None:
        if self.raw is not None:
            object.__setattr__(self, "raw", self.raw.strip())

    def is_object(self) -> bool:
        """True when the parameters are a JSON object (named parameters)."""
        return self.raw is not None and self.raw.startswith("{")

    def sequence(self) -> ParamsSequence:
        """A parser that reads positional parameters one at a time.

        An empty array counts as no parameters at all.
        """
        if self.raw is None or self.raw == "[]":
            return ParamsSequence("")
        return ParamsSequence(self.raw)

    def parse(self) -> Any:
        """Decode all parameters; absent parameters decode as ``None``."""
        text = self.raw if self.raw is not None else "null"
        try:
            return _loads(text)
        except ValueError as exc:
            raise InvalidParamsError(exc) from exc

    def one(self) -> Any:
        """Decode parameters that must be an array of exactly one value."""
        value = self.parse()
        if not isinstance(value, list):
            raise InvalidParamsError(
                f"invalid type: {json.dumps(value)}, expected an array of length 1"
            )
        if len(value) != 1:
            raise InvalidParamsError(
                f"invalid length {len(value)}, expected an array of length 1"
            )
        return value[0]


class ParamsSequence:
    """Reads positional parameters from a JSON array one value at a time."""

    def __init__(self, text: str) -> None:
        self._remaining = text

    @property
    def remaining(self) -> str:
        """The part of the array not consumed yet."""
        return self._remaining

    def __repr__(self) -> str:
        return f"ParamsSequence({self._remaining!r})"

    def _next_inner(self) -> tuple[bool, Any]:
        text = self._remaining
        if not text:
            return False, None
        head = text[0]
        if head == "]":
            self._remaining = ""
            return False, None
        if head not in "[,":
            raise InvalidParamsError(
                f"Invalid params. Expected one of '[', ']' or ',' but found {text!r}"
            )
        text = text[1:]
        start = len(text) - len(text.lstrip(_JSON_WS))
        if start == len(text):
            return False, None
        try:
            value, end = _DECODER.raw_decode(text, start)
        except ValueError as exc:
            self._remaining = ""
            raise InvalidParamsError(exc) from exc
        self._remaining = text[end:].lstrip()
        return True, value

    def next(self) -> Any:
        """Decode the next parameter; raises when none is left."""
        found, value = self._next_inner()
        if not found:
            raise InvalidParamsError("No more params")
        return value

    def optional_next(self) -> Any:
        """Decode the next parameter, or ``None`` for ``null`` and missing values."""
        _, value = self._next_inner()
        return value


def params_to_json(params: Sequence[Any] | Mapping[str, Any]) -> str:
    """Serialise positional (sequence) or named (mapping) parameters to compact JSON.

    Object members are written in sorted key order.
    """
    if isinstance(params, Mapping):
        for key in params:
            if not isinstance(key, str):
                raise TypeError(f"parameter names must be strings, got {key!r}")
        value: Any = dict(params)
    elif isinstance(params, Sequence) and not isinstance(params, (str, bytes, bytearray)):
        value = list(params)
    else:
        raise TypeError(f"parameters must be a sequence or a mapping, got {params!r}")
    return json.dumps(
        value, separators=(",", ":"), ensure_ascii=False, sort_keys=True, allow_nan=False
    )