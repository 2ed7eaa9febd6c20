"""Canned JSON-RPC wire payloads used when exercising servers and clients."""

from __future__ import annotations

import json
from typing import Any

from rpcwire.ids import Id

SUBSCRIPTION_ID = "D3wwzU6vvoUUYehv4qoFzq42DZnLoAETeFzeyk8swH4o"

PARSE_ERROR = "Parse error"
INTERNAL_ERROR = "Internal error"
INVALID_PARAMS = "Invalid params"
INVALID_REQUEST = "Invalid request"
METHOD_NOT_FOUND = "Method not found"


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def _format_addr(addr: tuple[str, int]) -> str:
    host, port = addr[0], addr[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def to_ws_uri_string(addr: tuple[str, int]) -> str:
    """A WebSocket URI for a ``(host, port)`` socket address."""
    return f"ws://{_format_addr(addr)}"


def to_http_uri(addr: tuple[str, int]) -> str:
    """An HTTP URI with root path for a ``(host, port)`` socket address."""
    return f"http://{_format_addr(addr)}/"


def ok_response(result: Any, id: Id) -> str:
    return f'{{"jsonrpc":"2.0","result":{_dumps(result)},"id":{_dumps(id)}}}'


def method_not_found(id: Id) -> str:
    return (
        '{"jsonrpc":"2.0","error":{"code":-32601,"message":"Method not found"},'
        f'"id":{_dumps(id)}}}'
    )


def parse_error(id: Id) -> str:
    return (
        '{"jsonrpc":"2.0","error":{"code":-32700,"message":"Parse error"},'
        f'"id":{_dumps(id)}}}'
    )


def oversized_request(max_limit: int) -> str:
    return (
        '{"jsonrpc":"2.0","error":{"code":-32701,"message":"Request is too big",'
        f'"data":"Exceeded max limit of {max_limit}"}},"id":null}}'
    )


def batches_not_supported() -> str:
    return (
        '{"jsonrpc":"2.0","error":{"code":-32005,'
        '"message":"Batched requests are not supported by this server"},"id":null}'
    )


def oversized_response(id: Id, max_limit: int) -> str:
    return (
        '{"jsonrpc":"2.0","error":{"code":-32702,"message":"Response is too big",'
        f'"data":"Exceeded max limit of {max_limit}"}},"id":{_dumps(id)}}}'
    )


def invalid_request(id: Id) -> str:
    return (
        '{"jsonrpc":"2.0","error":{"code":-32600,"message":"Invalid request"},'
        f'"id":{_dumps(id)}}}'
    )


def invalid_params(id: Id) -> str:
    return (
        '{"jsonrpc":"2.0","error":{"code":-32602,"message":"Invalid params"},'
        f'"id":{_dumps(id)}}}'
    )


def call(method: str, params: list[Any], id: Id) -> str:
    """A call with positional parameters, members in method/params/id order."""
    return (
        f'{{"jsonrpc":"2.0","method":{_dumps(method)},'
        f'"params":{_dumps(list(params))},"id":{_dumps(id)}}}'
    )


def call_execution_failed(msg: str, id: Id) -> str:
    """An execution failure; ``msg`` is inserted verbatim, without escaping."""
    return f'{{"jsonrpc":"2.0","error":{{"code":-32000,"message":"{msg}"}},"id":{_dumps(id)}}}'


def internal_error(id: Id) -> str:
    return (
        '{"jsonrpc":"2.0","error":{"code":-32603,"message":"Internal error"},'
        f'"id":{_dumps(id)}}}'
    )


def server_error(id: Id) -> str:
    return (
        '{"jsonrpc":"2.0","error":{"code":-32000,"message":"Server error"},'
        f'"id":{_dumps(id)}}}'
    )


def server_subscription_id_response(id: Id) -> str:
    """Reply to a subscribe call with the single fixed subscription id."""
    return f'{{"jsonrpc":"2.0","result":"{SUBSCRIPTION_ID}","id":{_dumps(id)}}}'


def server_subscription_response(result: Any) -> str:
    """A notification on the fixed subscription id."""
    return (
        f'{{"jsonrpc":"2.0","method":"bar","params":{{"subscription":"{SUBSCRIPTION_ID}",'
        f'"result":{_dumps(result)}}}}}'
    )


def server_notification(method: str, params: Any) -> str:
    """A server-originated notification; ``method`` is inserted verbatim."""
    return f'{{"jsonrpc":"2.0","method":"{method}", "params":{_dumps(params)} }}'