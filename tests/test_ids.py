import json

import pytest

from rpcwire.ids import parse_id, parse_subscription_id, parse_version


def test_id_deserialization_string():
    assert parse_id(json.loads('"2"')) == "2"


def test_id_deserialization_number():
    assert parse_id(json.loads("2")) == 2


def test_id_deserialization_non_numeric_string():
    assert parse_id(json.loads('"2x"')) == "2x"


def test_id_deserialization_array_fails():
    with pytest.raises(ValueError):
        parse_id(json.loads("[1337]"))


def test_id_deserialization_list():
    decoded = [parse_id(v) for v in json.loads(r'[null, 0, 2, "\"3"]')]
    assert decoded == [None, 0, 2, '"3']


def test_id_serialization():
    ids = [parse_id(v) for v in [None, 0, 2, 3, '"3', "test"]]
    assert json.dumps(ids, separators=(",", ":")) == r'[null,0,2,3,"\"3","test"]'


@pytest.mark.parametrize("bad", [-1, 2**64, 1.5, 2.0, True, {}, [1]])
def test_id_rejects_invalid(bad):
    with pytest.raises(ValueError):
        parse_id(bad)


def test_id_accepts_u64_max():
    assert parse_id(2**64 - 1) == 2**64 - 1


def test_two_point_zero_serde_works():
    initial = '"2.0"'
    version = parse_version(json.loads(initial))
    assert json.dumps(version) == initial


@pytest.mark.parametrize("bad", ["1.0", "2", 2.0, None])
def test_two_point_zero_rejects_others(bad):
    with pytest.raises(ValueError):
        parse_version(bad)


@pytest.mark.parametrize("text,expected", [("42", 42), ('"one"', "one")])
def test_subscription_id_serde_works(text, expected):
    sub_id = parse_subscription_id(json.loads(text))
    assert sub_id == expected
    assert json.dumps(sub_id) == text


@pytest.mark.parametrize("bad", [None, 13.99, -3, True, [1]])
def test_subscription_id_rejects_invalid(bad):
    with pytest.raises(ValueError):
        parse_subscription_id(bad)