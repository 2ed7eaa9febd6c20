import json

import pytest

from rpcwire import payloads
from rpcwire.error import ErrorResponse
from rpcwire.request import Notification, Request
from rpcwire.response import Response, subscription_response


def test_ws_uri_from_address():
    assert payloads.to_ws_uri_string(("127.0.0.1", 9944)) == "ws://127.0.0.1:9944"


def test_http_uri_has_root_path():
    uri = payloads.to_http_uri(("127.0.0.1", 9944))
    assert uri.startswith("http://127.0.0.1:9944")
    assert uri.endswith("/")


def test_ipv6_address_is_bracketed():
    assert payloads.to_ws_uri_string(("::1", 80)) == "ws://[::1]:80"


def test_batches_not_supported_wire():
    assert payloads.batches_not_supported() == (
        '{"jsonrpc":"2.0","error":{"code":-32005,'
        '"message":"Batched requests are not supported by this server"},"id":null}'
    )


def test_custom_subscription_id_ok_response():
    assert payloads.ok_response("0xdeadbeef", 0) == '{"jsonrpc":"2.0","result":"0xdeadbeef","id":0}'


def test_call_execution_failed_wire():
    assert payloads.call_execution_failed("MyAppError", 123) == (
        '{"jsonrpc":"2.0","error":{"code":-32000,"message":"MyAppError"},"id":123}'
    )


@pytest.mark.parametrize(
    "build, code, message",
    [
        (payloads.method_not_found, -32601, payloads.METHOD_NOT_FOUND),
        (payloads.parse_error, -32700, payloads.PARSE_ERROR),
        (payloads.invalid_request, -32600, payloads.INVALID_REQUEST),
        (payloads.invalid_params, -32602, payloads.INVALID_PARAMS),
        (payloads.internal_error, -32603, payloads.INTERNAL_ERROR),
        (payloads.server_error, -32000, "Server error"),
    ],
)
@pytest.mark.parametrize("request_id", [None, 7, "foo"])
def test_error_payloads_parse(build, code, message, request_id):
    parsed = ErrorResponse.from_json(build(request_id))
    assert parsed.error.code.code == code
    assert parsed.error.message == message
    assert parsed.id == request_id


def test_oversized_request_parses():
    parsed = ErrorResponse.from_json(payloads.oversized_request(100))
    assert parsed.error.code.code == -32701
    assert parsed.error.data == "Exceeded max limit of 100"
    assert parsed.id is None


def test_oversized_response_parses():
    parsed = ErrorResponse.from_json(payloads.oversized_response(1, 100))
    assert parsed.error.code.code == -32702
    assert parsed.error.message == "Response is too big"
    assert parsed.error.data == "Exceeded max limit of 100"
    assert parsed.id == 1


def test_ok_response_round_trip():
    parsed = Response.from_json(payloads.ok_response("a" * 100, 1))
    assert parsed == Response("a" * 100, 1)


def test_call_round_trip():
    parsed = Request.from_json(payloads.call("unsubscribe_hello", [13.5], 0))
    assert parsed.method == "unsubscribe_hello"
    assert parsed.id == 0
    assert parsed.parsed_params.one() == 13.5


def test_call_with_empty_params():
    parsed = Request.from_json(payloads.call("subscribe_hello", [], "x"))
    assert parsed.parsed_params.parse() == []
    assert parsed.id == "x"


def test_subscription_id_response():
    parsed = Response.from_json(payloads.server_subscription_id_response(3))
    assert parsed.result == payloads.SUBSCRIPTION_ID
    assert parsed.id == 3


def test_server_subscription_response_matches_serializer():
    result = {"hello": [1, 2]}
    expected = subscription_response("bar", payloads.SUBSCRIPTION_ID, result)
    assert payloads.server_subscription_response(result) == expected


def test_server_notification_parses():
    notif = Notification.from_json(payloads.server_notification("test", {"a": 1}))
    assert notif.method == "test"
    assert notif.params == {"a": 1}


def test_server_notification_keeps_source_spacing():
    text = payloads.server_notification("m", [])
    assert text.endswith(" }")
    assert json.loads(text)["params"] == []