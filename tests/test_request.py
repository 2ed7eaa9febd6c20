import pytest

from rpcwire.request import (
    InvalidRequest,
    Notification,
    Request,
    serialize_notification,
    serialize_request,
)


@pytest.mark.parametrize(
    "text, expected_id, expected_params, expected_method",
    [
        ('{"jsonrpc":"2.0", "method":"subtract", "params":[42, 23], "id":1}', 1, "[42, 23]", "subtract"),
        ('{"jsonrpc":"2.0", "method":"subtract", "id":null}', None, None, "subtract"),
        ('{"jsonrpc":"2.0", "method":"\\"m", "id":null}', None, None, '"m'),
    ],
)
def test_deserialize_call(text, expected_id, expected_params, expected_method):
    request = Request.from_json(text)
    assert request.id == expected_id
    assert request.method == expected_method
    assert request.params == expected_params


def test_deserialize_call_escaped_method_name():
    request = Request.from_json('{"jsonrpc":"2.0","id":1,"method":"\\"m\\""}')
    assert request.id == 1
    assert request.method == '"m"'
    assert request.params is None


def test_deserialize_call_params_decode():
    request = Request.from_json('{"jsonrpc":"2.0","id":"a","method":"m","params":{"x":[1]}}')
    assert request.params == '{"x":[1]}'
    assert request.parsed_params.parse() == {"x": [1]}


def test_deserialize_valid_notif_works():
    notif = Notification.from_json('{"jsonrpc":"2.0","method":"say_hello","params":[]}')
    assert notif.method == "say_hello"
    assert notif.params == []


def test_deserialize_valid_notif_escaped_method():
    notif = Notification.from_json('{"jsonrpc":"2.0","method":"\\"m\\"","params":[]}')
    assert notif.method == '"m"'


def test_notification_requires_params():
    with pytest.raises(ValueError):
        Notification.from_json('{"jsonrpc":"2.0","method":"say_hello"}')


def test_deserialize_call_bad_id_should_fail():
    with pytest.raises(ValueError):
        Request.from_json('{"jsonrpc":"2.0","method":"say_hello","params":[],"id":{}}')


def test_request_missing_version_fails():
    with pytest.raises(ValueError):
        Request.from_json('{"method":"bar","id":1}')


def test_request_wrong_version_fails():
    with pytest.raises(ValueError):
        Request.from_json('{"jsonrpc":"1.0","method":"bar","id":1}')


def test_request_malformed_json_fails():
    with pytest.raises(ValueError):
        Request.from_json('{"jsonrpc":"2.0","method":"bar","params":[1,"id":99}')


def test_request_unknown_field_is_ok():
    request = Request.from_json('{"jsonrpc":"2.0","method":"say_hello","id":1,"is_not_request_object":1}')
    assert request.method == "say_hello"
    assert request.id == 1


def test_deserialize_invalid_request():
    text = '{"id":120,"method":"my_method","params":["foo", "bar"],"extra_field":[]}'
    assert InvalidRequest.from_json(text) == InvalidRequest(id=120)


@pytest.mark.parametrize(
    "expected, request_id, params, method",
    [
        ('{"jsonrpc":"2.0","id":1,"method":"subtract","params":[42,23]}', 1, [42, 23], "subtract"),
        ('{"jsonrpc":"2.0","id":1,"method":"\\"m"}', 1, None, '"m'),
        ('{"jsonrpc":"2.0","id":null,"method":"subtract","params":[42,23]}', None, [42, 23], "subtract"),
        ('{"jsonrpc":"2.0","id":1,"method":"subtract"}', 1, None, "subtract"),
        ('{"jsonrpc":"2.0","id":null,"method":"subtract"}', None, None, "subtract"),
    ],
)
def test_serialize_call(expected, request_id, params, method):
    assert serialize_request(request_id, method, params) == expected


def test_serialize_notif():
    expected = '{"jsonrpc":"2.0","method":"say_hello","params":["hello"]}'
    assert serialize_notification("say_hello", ["hello"]) == expected


def test_serialize_notif_escaped_method_name():
    assert serialize_notification('"method"') == '{"jsonrpc":"2.0","method":"\\"method\\""}'


def test_request_to_json_keeps_raw_params():
    request = Request("subtract", "[42, 23]", 1)
    assert request.to_json() == '{"jsonrpc":"2.0","id":1,"method":"subtract","params":[42, 23]}'


def test_request_round_trip():
    original = Request("add", "[1,2]", "abc")
    assert Request.from_json(original.to_json()) == original


def test_notification_round_trip():
    original = Notification("bar", {"subscription": 1, "result": "x"})
    assert Notification.from_json(original.to_json()) == original