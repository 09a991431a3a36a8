"""The Database - catalog, item store and query engine behind one object.

    from boto3.dynamodb.conditions import Attr
    from tinydynamo.database import Database

    db = Database()
    db.create_table("product-catalog", [("id", "N")], throughput=dict(read=10, write=5))
    db.put_item("product-catalog", dict(id=101, title="Book 101 Title", authors={"Author1"}))
    db.get_item("product-catalog", dict(id=101))
    list(db.scan("product-catalog", Attr("price").gt(1000)))
"""
import typing as ty
from logging import getLogger

from boto3.dynamodb.conditions import ConditionBase

from .catalog import TableCatalog
from .constants import DEFAULT_ITEM_NAME, LOCK_STRIPES, MAX_ITEM_SIZE_BYTES
from .keys import KeyAttributeInput
from .query import QueryEngine, QueryPlan, compile_condition
from .store import ItemStore
from .types import (
    InputItem,
    Item,
    ItemKey,
    KeyAttributeType,
    KeySchema,
    Predicate,
    TableDefinition,
)
from .utils.iter import Reiterable

logger = getLogger(__name__)

Filter = ty.Union[Predicate, ConditionBase, None]


def _as_predicate(predicate: Filter) -> ty.Optional[Predicate]:
    if isinstance(predicate, ConditionBase):
        return compile_condition(predicate)
    return predicate


class Database:
    """A single in-process store. Thread-safe.

    Limits default to the environment-derived values in
    tinydynamo.constants and may be overridden per Database.
    """

    def __init__(
        self, *, max_item_size: int = MAX_ITEM_SIZE_BYTES, lock_stripes: int = LOCK_STRIPES
    ):
        self.catalog = TableCatalog()
        self.store = ItemStore(self.catalog, max_item_size=max_item_size, lock_stripes=lock_stripes)
        self.engine = QueryEngine(self.store)

    # tables

    def create_table(
        self,
        name: str,
        key_schema: ty.Sequence[KeyAttributeInput],
        *,
        throughput: ty.Any = None,
        block_until_ready: bool = True,
    ) -> TableDefinition:
        return self.catalog.create_table(
            name, key_schema, throughput=throughput, block_until_ready=block_until_ready
        )

    def delete_table(self, name: str) -> TableDefinition:
        """Removes the table and every item in it."""
        table = self.catalog.delete_table(name)
        self.store.drop_table(table)
        return table

    def list_tables(self) -> Reiterable[str]:
        return self.catalog.list_tables()

    def describe_table(self, name: str) -> KeySchema:
        return self.catalog.describe_table(name)

    def get_table(self, name: str) -> TableDefinition:
        return self.catalog.get_table(name)

    # items

    def put_item(self, table_name: str, item: InputItem) -> None:
        """Inserts or wholly replaces an item. Floats come back as Decimal
        and so are the one exception to a put then get giving back an
        equal item; pass Decimals if that matters to you."""
        self.store.put_item(table_name, item)

    def put_unless_exists(
        self, table_name: str, item: InputItem, *, nicename: str = DEFAULT_ITEM_NAME
    ) -> InputItem:
        return self.store.put_unless_exists(table_name, item, nicename=nicename)

    def put_items(
        self, table_name: str, items: ty.Iterable[InputItem], *, error_on_duplicates: bool = False
    ) -> int:
        return self.store.put_items(table_name, items, error_on_duplicates=error_on_duplicates)

    def get_item(self, table_name: str, key: ItemKey) -> ty.Optional[Item]:
        return self.store.get_item(table_name, key)

    def require_item(
        self, table_name: str, key: ItemKey, *, nicename: str = DEFAULT_ITEM_NAME
    ) -> Item:
        return self.store.require_item(table_name, key, nicename=nicename)

    def delete_item(self, table_name: str, key: ItemKey) -> ty.Optional[Item]:
        return self.store.delete_item(table_name, key)

    def delete_items(self, table_name: str, keys: ty.Iterable[ItemKey]) -> int:
        return self.store.delete_items(table_name, keys)

    def item_count(self, table_name: str) -> int:
        return self.store.item_count(table_name)

    # reads of many items

    def scan(self, table_name: str, predicate: Filter = None) -> Reiterable[Item]:
        """A full table scan. The filter may be any callable taking an
        item, or a boto3 condition. Always reads every item, even when
        the condition is on the hash key - use query for that."""
        return self.store.scan(table_name, _as_predicate(predicate))

    def scan_partition(
        self, table_name: str, hash_value: KeyAttributeType, predicate: Filter = None
    ) -> Reiterable[Item]:
        return self.store.scan_partition(table_name, hash_value, _as_predicate(predicate))

    def query(self, table_name: str, condition: ConditionBase) -> Reiterable[Item]:
        return self.engine.query(table_name, condition)

    def plan(self, table_name: str, condition: ConditionBase) -> QueryPlan:
        return self.engine.plan(table_name, condition)
