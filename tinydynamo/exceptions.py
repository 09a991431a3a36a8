"""Exceptions raised by tinydynamo.

None of these are fatal; every one of them means the operation had no
effect and the caller may fix its input and try again.
"""
from typing import Dict, Optional, Tuple, Type, TypeVar

from .types import ItemKey


class TinyDynamoException(Exception):
    """Base for everything tinydynamo raises on purpose"""


class TableException(TinyDynamoException):
    def __init__(self, msg: str, *, table_name: str = ""):
        self.table_name = table_name
        super().__init__(msg)


class TableNotFoundException(TableException):
    pass


class TableAlreadyExistsException(TableException):
    pass


class InvalidKeySchemaException(TableException):
    pass


class ItemException(TinyDynamoException):
    def __init__(self, msg: str, *, key: Optional[ItemKey] = None, table_name: str = "", **kwargs):
        self.__dict__.update(kwargs)
        self.key = key
        self.table_name = table_name
        super().__init__(msg)


class KeySchemaMismatchException(ItemException):
    """The item or key does not carry the table's key attributes with
    the declared scalar types."""


class InvalidKeyValueException(KeySchemaMismatchException):
    """A key attribute has the right type but an unusable value - empty,
    or too long."""


class ItemTooLargeException(ItemException):
    def __init__(self, msg: str, *, size: int, limit: int, **kwargs):
        self.size = size
        self.limit = limit
        super().__init__(msg, **kwargs)


class ItemNotFoundException(ItemException):
    pass


class ItemAlreadyExistsException(ItemException):
    pass


class UnsupportedValueTypeException(TinyDynamoException, TypeError):
    """Raised for any value outside Number, String, Binary and their
    non-empty homogeneous sets. Ordered lists are the usual culprit;
    use a set, or freeze the value into bytes yourself."""

    def __init__(self, attribute_name: str, shape: str, msg: str = ""):
        self.attribute_name = attribute_name
        self.shape = shape
        where = f" for attribute '{attribute_name}'" if attribute_name else ""
        super().__init__(msg or f"Unknown value type: {shape}{where}")


X = TypeVar("X", bound=ItemException)


_GENERATED_ITEM_EXCEPTION_TYPES: Dict[Tuple[str, str], type] = {
    ("Item", "ItemNotFoundException"): ItemNotFoundException,
    ("Item", "ItemAlreadyExistsException"): ItemAlreadyExistsException,
}


def get_item_exception_type(item_name: str, base_exc: Type[X]) -> Type[X]:
    """Makes (once) and returns a subclass of base_exc named after your
    kind of item, so that `get_item_exception_type("Product",
    ItemNotFoundException)` is a `ProductNotFoundException`."""
    if not item_name:
        return base_exc
    base_name = base_exc.__name__
    exc_key = (item_name, base_name)
    if exc_key not in _GENERATED_ITEM_EXCEPTION_TYPES:
        exc_minus_Item = base_name[4:] if base_name.startswith("Item") else base_name
        _GENERATED_ITEM_EXCEPTION_TYPES[exc_key] = type(
            f"{item_name}{exc_minus_Item}", (base_exc,), dict()
        )
    return _GENERATED_ITEM_EXCEPTION_TYPES[exc_key]
