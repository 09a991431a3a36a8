import json
from decimal import Decimal

import pytest
from boto3.dynamodb.types import Binary

from tinydynamo.codec import (
    attribute_type,
    attribute_value_size,
    decode,
    deserialize_item,
    dumps_item,
    encode,
    item_size,
    loads_item,
    normalize_value,
    serialize_item,
)
from tinydynamo.exceptions import UnsupportedValueTypeException


def test_serialize_item_uses_type_tags():
    wire = serialize_item(dict(id=101, title="Book 101 Title", cover=b"\x89PNG"))
    assert wire == dict(id={"N": "101"}, title={"S": "Book 101 Title"}, cover={"B": b"\x89PNG"})


def test_sets_are_tagged_by_member_type():
    wire = serialize_item(dict(authors={"Author1", "Author2"}, sizes={1, 2}, blobs={b"a"}))
    assert wire["authors"]["SS"] and set(wire["authors"]["SS"]) == {"Author1", "Author2"}
    assert set(wire["sizes"]["NS"]) == {"1", "2"}
    assert wire["blobs"] == {"BS": [b"a"]}


def test_deserialize_gives_decimals_bytes_and_sets():
    item = deserialize_item(
        serialize_item(dict(id=101, price=1.5, cover=bytearray(b"\x00\x01"), tags={"a"}))
    )
    assert item == dict(id=Decimal(101), price=Decimal("1.5"), cover=b"\x00\x01", tags={"a"})
    assert isinstance(item["id"], Decimal)
    assert type(item["cover"]) is bytes


def test_boto3_binary_is_accepted_and_comes_back_as_bytes():
    assert normalize_value(Binary(b"abc")) == b"abc"
    assert deserialize_item(serialize_item(dict(b=Binary(b"abc")))) == dict(b=b"abc")


def test_floats_use_their_shortest_repr():
    assert normalize_value(0.1) == Decimal("0.1")
    assert normalize_value(1e20) == Decimal("1E+20")


@pytest.mark.parametrize(
    "value, shape",
    [
        (["Author1", "Author2"], "list"),
        (("a", "b"), "tuple"),
        (dict(a=1), "dict"),
        (None, "NoneType"),
        (True, "bool"),
        (set(), "empty set"),
        ({1, "1"}, "set of mixed types (N, S)"),
        ({("a", 1)}, "set containing tuple"),
    ],
)
def test_unsupported_values_are_refused_not_coerced(value, shape):
    with pytest.raises(UnsupportedValueTypeException) as uvte_info:
        serialize_item(dict(id=1, thing=value))
    assert uvte_info.value.attribute_name == "thing"
    assert uvte_info.value.shape == shape
    assert "thing" in str(uvte_info.value)


def test_unsupported_value_is_also_a_type_error():
    with pytest.raises(TypeError):
        attribute_type([1, 2, 3])


@pytest.mark.parametrize(
    "number",
    [float("nan"), float("inf"), Decimal("-Infinity"), Decimal("1" * 39), Decimal("1e200")],
)
def test_numbers_dynamodb_cannot_represent_are_refused(number):
    with pytest.raises(UnsupportedValueTypeException):
        normalize_value(number, "price")


def test_38_significant_digits_are_fine():
    assert normalize_value(Decimal("1" * 38)) == Decimal("1" * 38)


def test_attribute_names_must_be_non_empty_strings():
    with pytest.raises(UnsupportedValueTypeException):
        serialize_item({"": 1})
    with pytest.raises(UnsupportedValueTypeException):
        serialize_item({3: 1})


def test_attribute_types():
    assert attribute_type(101) == "N"
    assert attribute_type(Decimal("2.5")) == "N"
    assert attribute_type("x") == "S"
    assert attribute_type(b"x") == "B"
    assert attribute_type(frozenset({"x"})) == "SS"
    assert attribute_type({1}) == "NS"
    assert attribute_type({b"x"}) == "BS"


def test_sizes_follow_dynamodb_rules():
    assert attribute_value_size("abc") == 3
    assert attribute_value_size("é") == 2
    assert attribute_value_size(b"\x00\x01") == 2
    assert attribute_value_size(100) == 2
    assert attribute_value_size(101) == 3
    assert attribute_value_size(12345678) == 5
    assert attribute_value_size({"a", "bb"}) == 3

    # names count too
    assert item_size(dict(id=1, s="abc")) == 2 + 2 + 1 + 3


def test_encode_is_self_describing_and_deterministic():
    assert encode(101) == b'{"N":"101"}'
    assert encode({"Author2", "Author1"}) == b'{"SS":["Author1","Author2"]}'
    assert encode({10, 9}) == b'{"NS":["9","10"]}'
    assert encode(b"\x00") == b'{"B":"AA=="}'


def test_decode_is_the_inverse_of_encode():
    assert decode(b'{"N":"101"}', "N") == Decimal(101)
    assert decode(encode({"Author1", "Author2"}), "SS") == {"Author1", "Author2"}
    assert decode(encode({b"\x00", b"\xff"}), "BS") == {b"\x00", b"\xff"}
    assert decode('{"B":"AA=="}', "B") == b"\x00"


def test_decode_refuses_mismatched_or_unknown_tags():
    with pytest.raises(ValueError):
        decode(b'{"N":"101"}', "S")
    with pytest.raises(ValueError):
        decode(b'{"L":[]}', "L")  # type: ignore
    with pytest.raises(ValueError):
        decode(b'"101"', "N")


def test_items_dump_to_sorted_json_and_load_back():
    item = dict(title="Book 101 Title", id=101, authors={"Author1"}, cover=b"\x01")
    dumped = dumps_item(item)
    assert list(json.loads(dumped)) == ["authors", "cover", "id", "title"]
    assert loads_item(dumped) == dict(
        title="Book 101 Title", id=Decimal(101), authors={"Author1"}, cover=b"\x01"
    )


def test_loads_item_requires_an_object():
    with pytest.raises(ValueError):
        loads_item(b"[]")


@pytest.mark.parametrize(
    "data, type_hint",
    [
        (b'{"N":"abc"}', "N"),
        (b'{"N":"NaN"}', "N"),
        (b'{"N":"1e500"}', "N"),
        (b'{"N":"1' + b"1" * 38 + b'"}', "N"),
        (b'{"SS":[]}', "SS"),
        (b'{"SS":[1,"a"]}', "SS"),
        (b'{"SS":[1]}', "SS"),
        (b'{"NS":["1","nope"]}', "NS"),
        (b'{"S":5}', "S"),
        (b'{"S":null}', "S"),
        (b'{"B":"not base64!"}', "B"),
        (b'{"BS":[]}', "BS"),
    ],
)
def test_decode_refuses_values_encode_could_not_have_produced(data, type_hint):
    with pytest.raises(ValueError):
        decode(data, type_hint)


def test_loads_item_refuses_invalid_values():
    with pytest.raises(ValueError) as ve_info:
        loads_item(b'{"id":{"N":"101"},"x":{"SS":[1,"a"]}}')
    assert isinstance(ve_info.value.__cause__, UnsupportedValueTypeException)
    assert ve_info.value.__cause__.attribute_name == "x"

    with pytest.raises(ValueError):
        loads_item(b'{"x":{"N":"1e500"}}')


def test_floats_come_back_as_decimals_not_floats():
    item = deserialize_item(serialize_item(dict(id=1, price=0.1)))
    assert item == dict(id=1, price=Decimal("0.1"))
    assert item != dict(id=1, price=0.1)
