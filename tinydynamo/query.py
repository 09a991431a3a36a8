"""Queries and filtered scans, expressed with boto3's condition builders.

    from boto3.dynamodb.conditions import Attr, Key

    db.query("product-catalog", Attr("price").gt(1000))
    db.query("product-catalog", Key("id").eq(101) & Attr("in-publication").eq(1))

Any condition is evaluated here, in process, against the stored items.
What differs is how many items have to be looked at. If the condition
pins the hash key with a top-level equality (alone, or ANDed with other
conditions), we go straight to that key or that partition. Every other
condition is a full table scan, however selective it is - which is why
key design matters.
"""
import operator
import typing as ty
from functools import reduce
from logging import getLogger

from boto3.dynamodb import conditions as cond
from typing_extensions import Literal

from .codec import SCALAR_TYPES, attribute_type, normalize_value
from .exceptions import KeySchemaMismatchException
from .keys import validate_item_key
from .store import ItemStore
from .types import Item, ItemKey, KeyAttribute, KeyAttributeType, KeySchema, Predicate
from .utils.iter import Reiterable

logger = getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:  # pragma: no cover
        return "MISSING"


_MISSING: ty.Any = _Missing()

Operand = ty.Callable[[Item], ty.Any]

_ORDERED_COMPARISONS: ty.Mapping[type, ty.Callable[[ty.Any, ty.Any], bool]] = {
    cond.LessThan: operator.lt,
    cond.LessThanEquals: operator.le,
    cond.GreaterThan: operator.gt,
    cond.GreaterThanEquals: operator.ge,
}


def _type_of(value: ty.Any) -> str:
    return attribute_type(value) if value is not _MISSING else ""


def _same_type(*values: ty.Any) -> bool:
    types = {_type_of(v) for v in values}
    return len(types) == 1 and "" not in types


def _size(value: ty.Any) -> ty.Any:
    if value is _MISSING:
        return _MISSING
    return len(value)  # characters, bytes, or set members


def _operand(value: ty.Any, attr_name: str = "") -> Operand:
    """An attribute reference, size() of one, or a literal value."""
    if isinstance(value, cond.Size):
        (attr,) = value.get_expression()["values"]
        return lambda item: _size(item.get(attr.name, _MISSING))
    if isinstance(value, cond.AttributeBase):
        return lambda item: item.get(value.name, _MISSING)
    literal = normalize_value(value, attr_name)
    return lambda item: literal


def _name(value: ty.Any) -> str:
    return value.name if isinstance(value, cond.AttributeBase) else ""


def _compare(condition: cond.ConditionBase, left: Operand, right: Operand) -> Predicate:
    if isinstance(condition, cond.Equals):
        return lambda item: _same_type(left(item), right(item)) and left(item) == right(item)
    if isinstance(condition, cond.NotEquals):
        return lambda item: not (_same_type(left(item), right(item)) and left(item) == right(item))
    compare = _ORDERED_COMPARISONS[type(condition)]

    def ordered(item: Item) -> bool:
        a, b = left(item), right(item)
        return _same_type(a, b) and _type_of(a) in SCALAR_TYPES and compare(a, b)

    return ordered


def _begins_with(a: ty.Any, prefix: ty.Any) -> bool:
    return _same_type(a, prefix) and _type_of(a) in ("S", "B") and a.startswith(prefix)


def _contains(a: ty.Any, b: ty.Any) -> bool:
    if a is _MISSING or b is _MISSING:
        return False
    a_type, b_type = _type_of(a), _type_of(b)
    if a_type in ("S", "B"):
        return a_type == b_type and b in a
    # a set: contains one member of the matching scalar type
    return a_type == b_type + "S" and b in a


def compile_condition(condition: cond.ConditionBase) -> Predicate:
    """Turns a boto3 condition into a predicate over items.

    Comparisons only ever hold between values of the same type, so
    `Attr("price").gt("1000")` matches no numeric price. A missing
    attribute fails every comparison except `ne`.
    """
    if not isinstance(condition, cond.ConditionBase):
        raise ValueError(f"Expected a boto3 condition, but got {condition!r}")
    values = condition.get_expression()["values"]

    if isinstance(condition, cond.And):
        left, right = (compile_condition(c) for c in values)
        return lambda item: left(item) and right(item)
    if isinstance(condition, cond.Or):
        left, right = (compile_condition(c) for c in values)
        return lambda item: left(item) or right(item)
    if isinstance(condition, cond.Not):
        negated = compile_condition(values[0])
        return lambda item: not negated(item)

    if isinstance(condition, cond.AttributeExists):
        name = values[0].name
        return lambda item: name in item
    if isinstance(condition, cond.AttributeNotExists):
        name = values[0].name
        return lambda item: name not in item
    if isinstance(condition, cond.AttributeType):
        name, type_tag = values[0].name, values[1]
        return lambda item: _type_of(item.get(name, _MISSING)) == type_tag

    attr_name = _name(values[0])
    if isinstance(condition, (cond.Equals, cond.NotEquals, *_ORDERED_COMPARISONS)):
        return _compare(condition, _operand(values[0]), _operand(values[1], attr_name))
    if isinstance(condition, cond.Between):
        attr, low, high = (_operand(v, attr_name) for v in values)

        def between(item: Item) -> bool:
            a, lo, hi = attr(item), low(item), high(item)
            return _same_type(a, lo, hi) and _type_of(a) in SCALAR_TYPES and lo <= a <= hi

        return between
    if isinstance(condition, cond.BeginsWith):
        attr, prefix = _operand(values[0]), _operand(values[1], attr_name)
        return lambda item: _begins_with(attr(item), prefix(item))
    if isinstance(condition, cond.Contains):
        attr, member = _operand(values[0]), _operand(values[1], attr_name)
        return lambda item: _contains(attr(item), member(item))
    if isinstance(condition, cond.In):
        attr = _operand(values[0])
        candidates = [_operand(v, attr_name) for v in values[1]]
        return lambda item: any(
            _same_type(attr(item), c(item)) and attr(item) == c(item) for c in candidates
        )
    raise ValueError(f"Unsupported condition type {type(condition).__name__}")


def set_contains(
    attr_name: str, members: ty.Iterable[ty.Any], AND: bool = True
) -> cond.ConditionBase:
    """A condition that the named set (or string) attribute contains all
    (or with AND=False, any) of the given members."""
    contains = [cond.Attr(attr_name).contains(member) for member in members]
    if not contains:
        raise ValueError("At least one member is required")
    return reduce(operator.and_ if AND else operator.or_, contains)


class QueryPlan(ty.NamedTuple):
    kind: Literal["get", "partition", "scan"]
    hash_value: ty.Optional[KeyAttributeType] = None
    key: ty.Optional[ItemKey] = None


def _conjuncts(condition: cond.ConditionBase) -> ty.Iterator[cond.ConditionBase]:
    if isinstance(condition, cond.And):
        for sub in condition.get_expression()["values"]:
            yield from _conjuncts(sub)
    else:
        yield condition


def _routable(key_attr: KeyAttribute, value: ty.Any) -> bool:
    """A value that could never be a key must not become a key lookup;
    the condition simply matches nothing, as it would in a scan."""
    try:
        validate_item_key((key_attr,), {key_attr.name: value})
        return True
    except KeySchemaMismatchException:
        return False


def _key_equalities(
    key_schema: KeySchema, condition: cond.ConditionBase
) -> ty.Dict[str, ty.Any]:
    key_attrs = {key_attr.name: key_attr for key_attr in key_schema}
    equalities: ty.Dict[str, ty.Any] = dict()
    for conjunct in _conjuncts(condition):
        if not isinstance(conjunct, cond.Equals):
            continue
        left, right = conjunct.get_expression()["values"]
        if isinstance(left, cond.Size) or not isinstance(left, cond.AttributeBase):
            continue
        if isinstance(right, cond.AttributeBase) or left.name not in key_attrs:
            continue
        if _routable(key_attrs[left.name], right):
            equalities.setdefault(left.name, right)
    return equalities


def plan(key_schema: KeySchema, condition: cond.ConditionBase) -> QueryPlan:
    """How a condition will be executed against a table with this key schema."""
    equalities = _key_equalities(key_schema, condition)
    hash_name = key_schema[0].name
    if hash_name not in equalities:
        return QueryPlan("scan")
    key = {k.name: equalities[k.name] for k in key_schema if k.name in equalities}
    if len(key) == len(key_schema):
        return QueryPlan("get", hash_value=equalities[hash_name], key=key)
    return QueryPlan("partition", hash_value=equalities[hash_name])


class QueryEngine:
    def __init__(self, store: ItemStore):
        self.store = store

    def plan(self, table_name: str, condition: cond.ConditionBase) -> QueryPlan:
        return plan(self.store.catalog.describe_table(table_name), condition)

    def query(self, table_name: str, condition: cond.ConditionBase) -> Reiterable[Item]:
        """All items matching the condition. Same results as a filtered
        scan; only the amount of work differs."""
        predicate = compile_condition(condition)
        query_plan = self.plan(table_name, condition)
        logger.debug(f"Query on table {table_name} will {query_plan.kind}")

        if query_plan.kind == "get":
            key = ty.cast(ItemKey, query_plan.key)

            def get_matching_item() -> ty.Iterator[Item]:
                item = self.store.get_item(table_name, key)
                if item is not None and predicate(item):
                    yield item

            return Reiterable(get_matching_item)
        if query_plan.kind == "partition":
            return self.store.scan_partition(
                table_name, ty.cast(KeyAttributeType, query_plan.hash_value), predicate
            )
        return self.store.scan(table_name, predicate)
