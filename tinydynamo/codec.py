"""Converting between Python values and the tagged attribute values we store.

Supported: Number (N), String (S), Binary (B), and non-empty,
homogeneous sets of each (NS, SS, BS). Everything else, lists in
particular, is refused with UnsupportedValueTypeException rather than
being coerced into something else.

Floats are accepted, but stored as the Decimal of their shortest repr,
so they do not compare equal to what you read back. Use Decimal (as
boto3 insists) if you need exact round trips.

Binary values are opaque. If you need to store a structure we don't
support, serialize it to bytes yourself (json, pickle, protobuf,
whatever) and deserialize it after reading.
"""
import base64
import binascii
import decimal
import json
import typing as ty
from collections.abc import Set as AbstractSet
from decimal import Decimal

from boto3.dynamodb.types import DYNAMODB_CONTEXT, Binary, TypeDeserializer, TypeSerializer

from .constants import MAX_NUMBER_PRECISION
from .exceptions import UnsupportedValueTypeException
from .types import AttributeType, InputItem, Item, SerializedAttributeValue, SerializedItem

SCALAR_TYPES = ("N", "S", "B")
SET_TYPES = {"N": "NS", "S": "SS", "B": "BS"}
ALL_TYPES = SCALAR_TYPES + tuple(SET_TYPES.values())


class _Deserializer(TypeDeserializer):
    def _deserialize_b(self, value):
        # boto3 would hand back its Binary wrapper; we promise plain bytes.
        return bytes(value)


__sr = TypeSerializer()
__ds = _Deserializer()


def _to_decimal(value: ty.Union[int, float, Decimal], attr_name: str) -> Decimal:
    if isinstance(value, float):
        value = repr(value)  # shortest repr round-trips; Decimal(float) does not
    try:
        dec = DYNAMODB_CONTEXT.create_decimal(value)
    except (decimal.Overflow, decimal.Underflow, decimal.Clamped):
        raise UnsupportedValueTypeException(attr_name, "number out of range")
    except (decimal.Inexact, decimal.Rounded):
        raise UnsupportedValueTypeException(
            attr_name, f"number with more than {MAX_NUMBER_PRECISION} significant digits"
        )
    if not dec.is_finite():
        raise UnsupportedValueTypeException(attr_name, f"non-finite number {dec}")
    return dec


def _classify_scalar(value: ty.Any, attr_name: str) -> ty.Tuple[str, ty.Any]:
    if isinstance(value, bool):
        # bool is an int, but storing it as 1 or 0 would be a silent coercion
        return "", value
    if isinstance(value, (int, float, Decimal)):
        return "N", _to_decimal(value, attr_name)
    if isinstance(value, str):
        return "S", value
    if isinstance(value, Binary):
        return "B", bytes(value.value)
    if isinstance(value, (bytes, bytearray)):
        return "B", bytes(value)
    return "", value


def _classify(value: ty.Any, attr_name: str) -> ty.Tuple[str, ty.Any]:
    tag, normalized = _classify_scalar(value, attr_name)
    if tag:
        return tag, normalized
    if isinstance(value, AbstractSet):
        if not value:
            raise UnsupportedValueTypeException(attr_name, "empty set")
        members = [_classify_scalar(member, attr_name) for member in value]
        tags = {member_tag for member_tag, _ in members}
        if "" in tags:
            bad = next(m for t, m in members if not t)
            raise UnsupportedValueTypeException(attr_name, f"set containing {type(bad).__name__}")
        if len(tags) > 1:
            raise UnsupportedValueTypeException(
                attr_name, f"set of mixed types ({', '.join(sorted(tags))})"
            )
        return SET_TYPES[tags.pop()], {m for _, m in members}
    raise UnsupportedValueTypeException(attr_name, type(value).__name__)


def attribute_type(value: ty.Any, attr_name: str = "") -> AttributeType:
    """The type tag for a supported value; raises for anything else."""
    return ty.cast(AttributeType, _classify(value, attr_name)[0])


def normalize_value(value: ty.Any, attr_name: str = "") -> ty.Any:
    """The canonical Python form of a supported value - Decimal for
    numbers, bytes for binaries, plain sets - which is also the form
    you get back when reading."""
    return _classify(value, attr_name)[1]


def _check_attribute_name(name: ty.Any) -> str:
    if not isinstance(name, str):
        raise UnsupportedValueTypeException(str(name), f"{type(name).__name__} attribute name")
    if not name:
        raise UnsupportedValueTypeException(name, "empty attribute name")
    return name


def serialize_value(value: ty.Any, attr_name: str = "") -> SerializedAttributeValue:
    return __sr.serialize(normalize_value(value, attr_name))


def deserialize_value(wire: SerializedAttributeValue) -> ty.Any:
    return __ds.deserialize(wire)


def serialize_item(item: InputItem) -> SerializedItem:
    """Validates every attribute and produces the tagged form, e.g.
    {"price": {"N": "2000"}}."""
    return {
        _check_attribute_name(name): serialize_value(value, name) for name, value in item.items()
    }


def deserialize_item(wire: ty.Mapping[str, SerializedAttributeValue]) -> Item:
    return {name: deserialize_value(wire[name]) for name in wire}


def _number_size(number: str) -> int:
    digits = "".join(map(str, Decimal(number).as_tuple().digits)).strip("0") or "0"
    return (len(digits) + 1) // 2 + 1


def _scalar_size(tag: str, raw: ty.Any) -> int:
    if tag == "N":
        return _number_size(raw)
    if tag == "S":
        return len(raw.encode("utf-8"))
    return len(raw)


def serialized_value_size(wire: SerializedAttributeValue) -> int:
    ((tag, raw),) = wire.items()
    if tag in SCALAR_TYPES:
        return _scalar_size(tag, raw)
    return sum(_scalar_size(tag[0], member) for member in raw)


def serialized_item_size(wire: ty.Mapping[str, SerializedAttributeValue]) -> int:
    return sum(len(name.encode("utf-8")) + serialized_value_size(v) for name, v in wire.items())


def attribute_value_size(value: ty.Any) -> int:
    """Sized the way DynamoDB sizes values: strings by their UTF-8
    length, binaries by their length, numbers at one byte per two
    significant digits plus one, and sets as the sum of their members."""
    return serialized_value_size(serialize_value(value))


def item_size(item: InputItem) -> int:
    """Attribute names count too."""
    return serialized_item_size(serialize_item(item))


def _b64(b: bytes) -> str:
    return base64.b64encode(b).decode()


def _to_json_value(wire: SerializedAttributeValue) -> ty.Dict[str, ty.Any]:
    ((tag, raw),) = wire.items()
    if tag == "B":
        return {tag: _b64(raw)}
    if tag == "BS":
        return {tag: [_b64(b) for b in sorted(raw)]}
    if tag == "NS":
        return {tag: sorted(raw, key=Decimal)}
    if tag == "SS":
        return {tag: sorted(raw)}
    return {tag: raw}


def _from_json_value(json_value: ty.Any, type_hint: str = "", attr_name: str = "") -> ty.Any:
    if not isinstance(json_value, dict) or len(json_value) != 1:
        raise ValueError(f"Expected a single tagged value but got {json_value!r}")
    ((tag, raw),) = json_value.items()
    if tag not in ALL_TYPES:
        raise ValueError(f"Unknown type tag '{tag}'")
    if type_hint and tag != type_hint:
        raise ValueError(f"Expected a value of type {type_hint} but got one of type {tag}")
    try:
        if tag == "B":
            raw = base64.b64decode(raw, validate=True)
        elif tag == "BS":
            raw = [base64.b64decode(b, validate=True) for b in raw]
        actual_tag, value = _classify(deserialize_value({tag: raw}), attr_name)
    except (
        UnsupportedValueTypeException,
        decimal.DecimalException,
        binascii.Error,
        TypeError,
    ) as e:
        raise ValueError(f"Invalid value of type {tag}: {e}") from e
    if actual_tag != tag:
        raise ValueError(f"Value tagged {tag} is actually of type {actual_tag}")
    return value


def encode(value: ty.Any, attr_name: str = "") -> bytes:
    """A self-describing byte encoding of a single value:
    `{"N":"101"}`, `{"SS":["Author1"]}`, `{"B":"<base64>"}`.

    Deterministic - set members are sorted.
    """
    wire = serialize_value(value, attr_name)
    return json.dumps(_to_json_value(wire), separators=(",", ":")).encode()


def decode(data: ty.Union[bytes, str], type_hint: AttributeType) -> ty.Any:
    """Inverse of encode. Numbers come back as Decimal, binaries as bytes.

    Raises ValueError for anything encode could not have produced,
    including NaN, empty sets and sets of mixed types.
    """
    if type_hint not in ALL_TYPES:
        raise ValueError(f"Unknown type hint '{type_hint}'")
    return _from_json_value(json.loads(data), type_hint)


def dumps_item(item: InputItem) -> bytes:
    """The item as a JSON mapping of attribute name to tagged value."""
    return json.dumps(
        {name: _to_json_value(wire) for name, wire in serialize_item(item).items()},
        separators=(",", ":"),
        sort_keys=True,
    ).encode()


def loads_item(data: ty.Union[bytes, str]) -> Item:
    obj = json.loads(data)
    if not isinstance(obj, dict):
        raise ValueError("An item must be a JSON object")
    return {
        _check_attribute_name(name): _from_json_value(v, attr_name=name) for name, v in obj.items()
    }
