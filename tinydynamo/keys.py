"""Key schemas and the primary keys derived from them."""
import typing as ty

from .codec import attribute_type, normalize_value
from .constants import MAX_HASH_KEY_LEN, MAX_RANGE_KEY_LEN
from .exceptions import (
    InvalidKeySchemaException,
    InvalidKeyValueException,
    KeySchemaMismatchException,
    UnsupportedValueTypeException,
)
from .types import (
    AttributeDefinition,
    HashableItemKey,
    InputItem,
    ItemKey,
    KeyAndType,
    KeyAttribute,
    KeySchema,
    ScalarAttributeType,
)

KeyAttributeInput = ty.Union[KeyAttribute, ty.Tuple[str, str]]


def parse_key_schema(
    key_schema: ty.Sequence[KeyAttributeInput], table_name: str = ""
) -> KeySchema:
    """Accepts KeyAttributes or plain (name, type) pairs, hash key first.

    Types are case-insensitive, so `[("id", "n")]` is fine.
    """
    if not isinstance(key_schema, (list, tuple)):
        raise InvalidKeySchemaException(
            f"Key schema must be a sequence of (name, type) pairs; got {key_schema!r}",
            table_name=table_name,
        )
    if not 1 <= len(key_schema) <= 2:
        raise InvalidKeySchemaException(
            "Key schema must have a hash key and at most one range key; "
            f"got {len(key_schema)} attributes",
            table_name=table_name,
        )
    parsed: ty.List[KeyAttribute] = list()
    for key_attr in key_schema:
        try:
            name, type_ = key_attr
        except (TypeError, ValueError):
            raise InvalidKeySchemaException(
                f"Key attribute must be a (name, type) pair; got {key_attr!r}",
                table_name=table_name,
            )
        if not isinstance(name, str) or not name:
            raise InvalidKeySchemaException(
                f"Key attribute name must be a non-empty string; got {name!r}",
                table_name=table_name,
            )
        scalar_type = type_.upper() if isinstance(type_, str) else type_
        if scalar_type not in ("N", "S", "B"):
            raise InvalidKeySchemaException(
                f"Key attribute '{name}' must be of type N, S or B; got {type_!r}",
                table_name=table_name,
            )
        parsed.append(KeyAttribute(name, ty.cast(ScalarAttributeType, scalar_type)))
    if len({key_attr.name for key_attr in parsed}) != len(parsed):
        raise InvalidKeySchemaException(
            f"Key schema has duplicate attribute names: {[k.name for k in parsed]}",
            table_name=table_name,
        )
    return tuple(parsed)


def key_schema_from_definitions(
    key_schema: ty.Sequence[KeyAndType], attribute_definitions: ty.Sequence[AttributeDefinition],
) -> KeySchema:
    """For those coming from boto3's create_table(KeySchema=..., AttributeDefinitions=...)"""
    types_by_name = {d["AttributeName"]: d["AttributeType"] for d in attribute_definitions}
    ordered = sorted(key_schema, key=lambda key: 0 if key["KeyType"] == "HASH" else 1)
    if ordered and ordered[0]["KeyType"] != "HASH":
        raise InvalidKeySchemaException("Key schema must contain a HASH key")
    try:
        return parse_key_schema(
            [(key["AttributeName"], types_by_name[key["AttributeName"]]) for key in ordered]
        )
    except KeyError as ke:
        raise InvalidKeySchemaException(f"No AttributeDefinition for key attribute {ke}")


def key_attribute_names(key_schema: KeySchema) -> ty.Tuple[str, ...]:
    return tuple(key_attr.name for key_attr in key_schema)


def extract_key_from_item(key_schema: KeySchema, item: InputItem) -> ItemKey:
    """Projects the key attributes out of an item. Does not validate them."""
    return {name: item[name] for name in key_attribute_names(key_schema) if name in item}


def _check_key_value(key_attr: KeyAttribute, value: ty.Any, max_len: int, **exc_kwargs) -> ty.Any:
    try:
        actual_type = attribute_type(value, key_attr.name)
    except UnsupportedValueTypeException as uvte:
        actual_type = uvte.shape
    if actual_type != key_attr.type:
        raise KeySchemaMismatchException(
            f"Key attribute '{key_attr.name}' must be of type {key_attr.type}; got {actual_type}",
            **exc_kwargs,
        )
    value = normalize_value(value, key_attr.name)
    if key_attr.type != "N":
        length = len(value.encode("utf-8")) if key_attr.type == "S" else len(value)
        if not length:
            raise InvalidKeyValueException(
                f"Key attribute '{key_attr.name}' may not be empty", **exc_kwargs
            )
        if length > max_len:
            raise InvalidKeyValueException(
                f"Key attribute '{key_attr.name}' is {length} bytes; the limit is {max_len}",
                **exc_kwargs,
            )
    return value


def validate_item_key(
    key_schema: KeySchema, item: InputItem, *, table_name: str = "", exact: bool = False
) -> HashableItemKey:
    """Checks that every key attribute is present with the declared
    scalar type, and returns the hashable form of the key.

    With exact=True (as for a key passed to get_item or delete_item),
    attributes outside the key schema are also refused.
    """
    key = extract_key_from_item(key_schema, item)
    exc_kwargs = dict(key=key, table_name=table_name)
    missing = [name for name in key_attribute_names(key_schema) if name not in item]
    if missing:
        raise KeySchemaMismatchException(
            f"Missing key attribute(s) {missing} for table '{table_name}'", **exc_kwargs
        )
    if exact and len(item) != len(key_schema):
        extra = sorted(set(item) - set(key_attribute_names(key_schema)))
        raise KeySchemaMismatchException(
            f"The provided key has attributes {extra} outside "
            f"the key schema of table '{table_name}'",
            **exc_kwargs,
        )
    hash_value = _check_key_value(
        key_schema[0], item[key_schema[0].name], MAX_HASH_KEY_LEN, **exc_kwargs
    )
    range_value = None
    if len(key_schema) > 1:
        range_value = _check_key_value(
            key_schema[1], item[key_schema[1].name], MAX_RANGE_KEY_LEN, **exc_kwargs
        )
    return (hash_value, range_value)


def hashable_key_to_key(key_schema: KeySchema, hashable_key: HashableItemKey) -> ItemKey:
    hash_value, range_value = hashable_key
    if len(key_schema) == 1:
        return {key_schema[0].name: hash_value}
    return {key_schema[0].name: hash_value, key_schema[1].name: range_value}
