"""Basic types for tinydynamo data and operations"""
import typing as ty
from datetime import datetime
from decimal import Decimal

from typing_extensions import Literal, TypedDict

ScalarAttributeType = Literal["N", "S", "B"]
SetAttributeType = Literal["NS", "SS", "BS"]
AttributeType = ty.Union[ScalarAttributeType, SetAttributeType]

KeyAttributeType = ty.Union[int, str, Decimal, bytes]
ItemKey = ty.Mapping[str, KeyAttributeType]

AttrInput = ty.Mapping[str, ty.Any]
InputItem = AttrInput

AttrDict = ty.Dict[str, ty.Any]
Item = AttrDict

SerializedAttributeValue = ty.Dict[str, ty.Any]
SerializedItem = ty.Dict[str, SerializedAttributeValue]
# the tagged form, e.g. {"price": {"N": "2000"}}

HashableItemKey = ty.Tuple[KeyAttributeType, ty.Optional[KeyAttributeType]]
# (hash value, range value or None) - what the Item Store indexes by

Predicate = ty.Callable[[Item], bool]


class KeyAttribute(ty.NamedTuple):
    name: str
    type: ScalarAttributeType


KeySchema = ty.Tuple[KeyAttribute, ...]
"""The hash key attribute first, then the optional range key attribute."""


class KeyAndType(TypedDict):
    AttributeName: str
    KeyType: ty.Union[Literal["HASH"], Literal["RANGE"]]


class AttributeDefinition(TypedDict):
    AttributeName: str
    AttributeType: ScalarAttributeType


class Throughput(ty.NamedTuple):
    """Advisory read and write capacity units. Nothing enforces these."""

    read: int = 1
    write: int = 1


TableStatus = Literal["ACTIVE"]


class TableDefinition(ty.NamedTuple):
    name: str
    key_schema: KeySchema
    throughput: Throughput
    created_at: datetime
    status: TableStatus = "ACTIVE"

    @property
    def hash_key(self) -> KeyAttribute:
        return self.key_schema[0]

    @property
    def range_key(self) -> ty.Optional[KeyAttribute]:
        return self.key_schema[1] if len(self.key_schema) > 1 else None
