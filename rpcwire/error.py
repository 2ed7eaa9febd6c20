"""JSON-RPC error codes, error objects, error responses and call errors."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from rpcwire.ids import JSONRPC_VERSION, Id, parse_id, parse_version

PARSE_ERROR_CODE = -32700
OVERSIZED_REQUEST_CODE = -32701
OVERSIZED_RESPONSE_CODE = -32702
INTERNAL_ERROR_CODE = -32603
INVALID_PARAMS_CODE = -32602
INVALID_REQUEST_CODE = -32600
METHOD_NOT_FOUND_CODE = -32601
SERVER_IS_BUSY_CODE = -32604
CALL_EXECUTION_FAILED_CODE = -32000
UNKNOWN_ERROR_CODE = -32001
SUBSCRIPTION_CLOSED = -32003
SUBSCRIPTION_CLOSED_WITH_ERROR = -32004
BATCHES_NOT_SUPPORTED_CODE = -32005
TOO_MANY_SUBSCRIPTIONS_CODE = -32006

PARSE_ERROR_MSG = "Parse error"
OVERSIZED_REQUEST_MSG = "Request is too big"
OVERSIZED_RESPONSE_MSG = "Response is too big"
INTERNAL_ERROR_MSG = "Internal error"
INVALID_PARAMS_MSG = "Invalid params"
INVALID_REQUEST_MSG = "Invalid request"
METHOD_NOT_FOUND_MSG = "Method not found"
SERVER_IS_BUSY_MSG = "Server is busy, try again later"
SERVER_ERROR_MSG = "Server error"
BATCHES_NOT_SUPPORTED_MSG = "Batched requests are not supported by this server"
TOO_MANY_SUBSCRIPTIONS_MSG = "Too many subscriptions on the connection"

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


class ErrorKind(Enum):
    """The kinds of JSON-RPC error code."""

    PARSE_ERROR = "parse_error"
    OVERSIZED_REQUEST = "oversized_request"
    INVALID_REQUEST = "invalid_request"
    METHOD_NOT_FOUND = "method_not_found"
    SERVER_IS_BUSY = "server_is_busy"
    INVALID_PARAMS = "invalid_params"
    INTERNAL_ERROR = "internal_error"
    SERVER_ERROR = "server_error"


_FIXED_CODES = {
    ErrorKind.PARSE_ERROR: PARSE_ERROR_CODE,
    ErrorKind.OVERSIZED_REQUEST: OVERSIZED_REQUEST_CODE,
    ErrorKind.INVALID_REQUEST: INVALID_REQUEST_CODE,
    ErrorKind.METHOD_NOT_FOUND: METHOD_NOT_FOUND_CODE,
    ErrorKind.SERVER_IS_BUSY: SERVER_IS_BUSY_CODE,
    ErrorKind.INVALID_PARAMS: INVALID_PARAMS_CODE,
    ErrorKind.INTERNAL_ERROR: INTERNAL_ERROR_CODE,
}

_MESSAGES = {
    ErrorKind.PARSE_ERROR: PARSE_ERROR_MSG,
    ErrorKind.OVERSIZED_REQUEST: OVERSIZED_REQUEST_MSG,
    ErrorKind.INVALID_REQUEST: INVALID_REQUEST_MSG,
    ErrorKind.METHOD_NOT_FOUND: METHOD_NOT_FOUND_MSG,
    ErrorKind.SERVER_IS_BUSY: SERVER_IS_BUSY_MSG,
    ErrorKind.INVALID_PARAMS: INVALID_PARAMS_MSG,
    ErrorKind.INTERNAL_ERROR: INTERNAL_ERROR_MSG,
    ErrorKind.SERVER_ERROR: SERVER_ERROR_MSG,
}

# "Server is busy" is never recognised from a bare integer.
_KIND_BY_CODE = {
    code: kind for kind, code in _FIXED_CODES.items() if kind is not ErrorKind.SERVER_IS_BUSY
}


def _check_i32(code: Any) -> int:
    if not isinstance(code, int) or isinstance(code, bool):
        raise ValueError(f"error code must be an integer, got {code!r}")
    if not _I32_MIN <= code <= _I32_MAX:
        raise ValueError(f"error code {code} is out of the 32-bit range")
    return code


@dataclass(frozen=True)
class ErrorCode:
    """A JSON-RPC error code; only server errors carry an explicit code."""

    kind: ErrorKind
    code: int | None = None

    def __post_init__(self) -> None:
        fixed = _FIXED_CODES.get(self.kind)
        if fixed is None:
            if self.code is None:
                raise ValueError("a server error needs an explicit code")
            _check_i32(self.code)
        elif self.code is None:
            object.__setattr__(self, "code", fixed)
        elif self.code != fixed:
            raise ValueError(f"{self.kind.name} always has code {fixed}, not {self.code}")

    @classmethod
    def from_code(cls, code: int) -> ErrorCode:
        """Map an integer code to its kind, falling back to a server error."""
        _check_i32(code)
        kind = _KIND_BY_CODE.get(code)
        if kind is None:
            return cls(ErrorKind.SERVER_ERROR, code)
        return cls(kind)

    def message(self) -> str:
        """The standard message for this code."""
        return _MESSAGES[self.kind]

    def __str__(self) -> str:
        return f"{self.code}: {self.message()}"


@dataclass
class ErrorObject:
    """The ``error`` member of a failed JSON-RPC response."""

    code: ErrorCode
    message: str
    data: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.code, ErrorCode):
            self.code = ErrorCode.from_code(self.code)
        if not isinstance(self.message, str):
            raise ValueError(f"error message must be a string, got {self.message!r}")

    @classmethod
    def from_code(cls, code: ErrorCode | int) -> ErrorObject:
        """Build an error object carrying the code's standard message."""
        if not isinstance(code, ErrorCode):
            code = ErrorCode.from_code(code)
        return cls(code, code.message())

    @classmethod
    def from_call_error(cls, error: CallError) -> ErrorObject:
        """Turn a call error into the error object sent to the caller."""
        if isinstance(error, InvalidParamsError):
            return cls(INVALID_PARAMS_CODE, str(error.cause))
        if isinstance(error, CallFailedError):
            return cls(CALL_EXECUTION_FAILED_CODE, str(error.cause))
        if isinstance(error, CustomCallError):
            return error.error
        raise TypeError(f"unsupported call error: {error!r}")

    def to_dict(self) -> dict[str, Any]:
        """The JSON object form; ``data`` is left out when absent."""
        out: dict[str, Any] = {"code": self.code.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out

    @classmethod
    def from_dict(cls, data: Any) -> ErrorObject:
        """Build from a decoded JSON object, rejecting unknown members."""
        if not isinstance(data, dict):
            raise ValueError(f"error object must be a JSON object, got {data!r}")
        unknown = set(data) - {"code", "message", "data"}
        if unknown:
            raise ValueError(f"unknown field(s) in error object: {sorted(unknown)}")
        for key in ("code", "message"):
            if key not in data:
                raise ValueError(f"missing field `{key}`")
        return cls(ErrorCode.from_code(_check_i32(data["code"])), data["message"], data.get("data"))


@dataclass
class ErrorResponse:
    """A failed JSON-RPC response object."""

    error: ErrorObject
    id: Id = None

    def to_json(self) -> str:
        """Serialise to compact JSON."""
        body = {"jsonrpc": JSONRPC_VERSION, "error": self.error.to_dict(), "id": self.id}
        return json.dumps(body, separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str | bytes) -> ErrorResponse:
        """Parse a failed response; raises ``ValueError`` when malformed."""
        value = json.loads(text)
        if not isinstance(value, dict):
            raise ValueError("error response must be a JSON object")
        for key in ("jsonrpc", "error", "id"):
            if key not in value:
                raise ValueError(f"missing field `{key}`")
        parse_version(value["jsonrpc"])
        return cls(ErrorObject.from_dict(value["error"]), parse_id(value["id"]))

    def __str__(self) -> str:
        return self.to_json()


class CallError(Exception):
    """Raised by a method when a call fails."""


class InvalidParamsError(CallError):
    """The call had invalid parameters."""

    def __init__(self, cause: Any) -> None:
        self.cause = cause
        super().__init__(f"Invalid params in the call: {cause}")


class CallFailedError(CallError):
    """The call failed; the default code and the cause's text are used."""

    def __init__(self, cause: Any) -> None:
        self.cause = cause
        super().__init__(f"RPC call failed: {cause}")


class CustomCallError(CallError):
    """The call failed with a specific error object."""

    def __init__(self, error: ErrorObject) -> None:
        self.error = error
        super().__init__(f"RPC call failed: {error!r}")


class SubscriptionEmptyError(Exception):
    """A subscription callback failed; the error carries no data."""


class AcceptRejectReason(Enum):
    """Why accepting or rejecting a subscription failed."""

    ALREADY_CALLED = "The method was already called"
    REMOTE_PEER_ABORTED = "The remote peer closed the connection or unsubscribed"


class SubscriptionAcceptRejectError(Exception):
    """Accepting or rejecting a subscription failed."""

    def __init__(self, reason: AcceptRejectReason) -> None:
        self.reason = reason
        super().__init__(reason.value)


def reject_too_many_subscriptions(limit: int) -> ErrorObject:
    """Error object for a connection over its subscription limit."""
    return ErrorObject(
        TOO_MANY_SUBSCRIPTIONS_CODE, TOO_MANY_SUBSCRIPTIONS_MSG, f"Exceeded max limit of {limit}"
    )


def reject_too_big_request(limit: int) -> ErrorObject:
    """Error object for a request over the size limit."""
    return ErrorObject(OVERSIZED_REQUEST_CODE, OVERSIZED_REQUEST_MSG, f"Exceeded max limit of {limit}")