"""JSON-RPC 2.0 wire types, parameter parsing, server lifecycle utilities and test mocks."""

__version__ = "0.15.1"

__all__ = [
    "error",
    "ids",
    "lifecycle",
    "mocks",
    "params",
    "payloads",
    "request",
    "response",
]