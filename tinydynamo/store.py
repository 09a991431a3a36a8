"""The Item Store - every item of every table lives here.

Items are kept in their serialized (tagged) form, partitioned by hash
key value:

    partitions[hash_value][range_value_or_None] = {"id": {"N": "101"}, ...}

so nothing a caller holds is ever shared with the store, and a read
always produces fresh objects.

Concurrency: readers never lock. Writers take one of a fixed set of
lock stripes chosen by hash key value, so two writers of the same
primary key are serialized and the last one to finish wins. Partition
dicts are never mutated once published - a write builds a new
partition dict and swaps it in - so copying the outer dict is a
consistent point-in-time snapshot of the whole table. The price is
that a write costs O(size of its partition), which for a hash-only
table is always a single item.
"""
import threading
import timeit
import typing as ty
from logging import getLogger

from .catalog import TableCatalog
from .codec import deserialize_item, serialize_item, serialized_item_size
from .constants import DEFAULT_ITEM_NAME, LOCK_STRIPES, MAX_ITEM_SIZE_BYTES
from .exceptions import (
    ItemAlreadyExistsException,
    ItemNotFoundException,
    ItemTooLargeException,
    get_item_exception_type,
)
from .keys import extract_key_from_item, hashable_key_to_key, validate_item_key
from .types import (
    HashableItemKey,
    InputItem,
    Item,
    ItemKey,
    KeyAttributeType,
    Predicate,
    SerializedItem,
    TableDefinition,
)
from .utils.iter import Reiterable

logger = getLogger(__name__)

Partition = ty.Mapping[ty.Optional[KeyAttributeType], SerializedItem]
Partitions = ty.Dict[KeyAttributeType, Partition]


class _TableItems:
    """The items of a single table incarnation."""

    def __init__(self, table: TableDefinition, lock_stripes: int):
        self.table = table
        self.partitions: Partitions = dict()
        self._locks = [threading.Lock() for _ in range(max(1, lock_stripes))]

    def _lock_for(self, hash_value: KeyAttributeType) -> threading.Lock:
        return self._locks[hash(hash_value) % len(self._locks)]

    def get(self, key: HashableItemKey) -> ty.Optional[SerializedItem]:
        hash_value, range_value = key
        return self.partitions.get(hash_value, {}).get(range_value)

    def put(
        self, key: HashableItemKey, wire: SerializedItem, *, unless_exists: bool = False
    ) -> ty.Tuple[bool, ty.Optional[SerializedItem]]:
        """Returns whether the write happened, and the previous item."""
        hash_value, range_value = key
        with self._lock_for(hash_value):
            partition = self.partitions.get(hash_value, {})
            previous = partition.get(range_value)
            if unless_exists and previous is not None:
                return False, previous
            self.partitions[hash_value] = {**partition, range_value: wire}
            return True, previous

    def delete(self, key: HashableItemKey) -> ty.Optional[SerializedItem]:
        hash_value, range_value = key
        with self._lock_for(hash_value):
            partition = self.partitions.get(hash_value, {})
            if range_value not in partition:
                return None
            remaining = {r: item for r, item in partition.items() if r != range_value}
            if remaining:
                self.partitions[hash_value] = remaining
            else:
                del self.partitions[hash_value]
            return partition[range_value]

    def snapshot(self) -> Partitions:
        return dict(self.partitions)


class ItemStore:
    def __init__(
        self,
        catalog: TableCatalog,
        *,
        max_item_size: int = MAX_ITEM_SIZE_BYTES,
        lock_stripes: int = LOCK_STRIPES,
    ):
        self.catalog = catalog
        self.max_item_size = max_item_size
        self.lock_stripes = lock_stripes
        self._lock = threading.Lock()
        self._tables: ty.Dict[str, _TableItems] = dict()

    def _table_items(self, table_name: str) -> _TableItems:
        """Raises TableNotFoundException if the table is not ACTIVE."""
        table = self.catalog.get_table(table_name)
        items = self._tables.get(table_name)
        if items is None or items.table is not table:
            with self._lock:
                items = self._tables.get(table_name)
                if items is None or items.table is not table:
                    # first use, or the name now belongs to a newly created table
                    items = _TableItems(table, self.lock_stripes)
                    self._tables[table_name] = items
        return items

    def _prepare(
        self, table: TableDefinition, item: InputItem
    ) -> ty.Tuple[HashableItemKey, SerializedItem]:
        """All validation happens here, before anything is written."""
        key = validate_item_key(table.key_schema, item, table_name=table.name)
        wire = serialize_item(item)
        size = serialized_item_size(wire)
        if size > self.max_item_size:
            raise ItemTooLargeException(
                f"Item size of {size} bytes exceeds the limit of {self.max_item_size} bytes, "
                "including attribute names",
                size=size,
                limit=self.max_item_size,
                key=extract_key_from_item(table.key_schema, item),
                table_name=table.name,
            )
        return key, wire

    def put_item(self, table_name: str, item: InputItem) -> None:
        """Inserts the item, or replaces the item with the same primary key
        in its entirety. Attributes of the previous item that are absent
        from the new one are gone afterward - there is no merge.

        Reading the item back gives an equal item, with one exception:
        floats are stored as the Decimal of their shortest repr, so a
        price of 0.1 comes back as Decimal("0.1"), which is not == 0.1.
        """
        items = self._table_items(table_name)
        key, wire = self._prepare(items.table, item)
        logger.debug(f"PutItem into table {table_name}", extra=dict(json=dict(item=item)))
        items.put(key, wire)

    def put_unless_exists(
        self, table_name: str, item: InputItem, *, nicename: str = DEFAULT_ITEM_NAME
    ) -> InputItem:
        """Like put_item, but raises {nicename}AlreadyExistsException
        instead of overwriting an existing item.

        If successful, just returns the passed item.
        """
        nicename = nicename or DEFAULT_ITEM_NAME
        items = self._table_items(table_name)
        key, wire = self._prepare(items.table, item)
        written, _previous = items.put(key, wire, unless_exists=True)
        if not written:
            raise get_item_exception_type(nicename, ItemAlreadyExistsException)(
                f"{nicename} already exists and was not overwritten!",
                key=hashable_key_to_key(items.table.key_schema, key),
                table_name=table_name,
            )
        return item

    def put_items(
        self, table_name: str, items: ty.Iterable[InputItem], *, error_on_duplicates: bool = False
    ) -> int:
        """Each put is atomic; the batch as a whole is not. If one item
        is refused, the items before it stay written.

        With error_on_duplicates, the whole batch is validated for
        duplicate primary keys before anything is written.
        """
        start = timeit.default_timer()
        table_items = self._table_items(table_name)
        if error_on_duplicates:
            items = list(items)
            seen: ty.Set[HashableItemKey] = set()
            for item in items:
                key = validate_item_key(table_items.table.key_schema, item, table_name=table_name)
                if key in seen:
                    raise ValueError(f"Duplicate primary key {key} in batch for table {table_name}")
                seen.add(key)

        num_written = 0
        for item in items:
            self.put_item(table_name, item)
            num_written += 1
            if num_written % 1000 == 0:
                logger.info(
                    f"Large partial write report; have written {num_written} "
                    f"items to {table_name} in this batch"
                )
        if num_written:
            ms_elapsed = (timeit.default_timer() - start) * 1000
            logger.debug(
                f"BatchPut to {table_name} wrote {num_written} items in {int(ms_elapsed)} ms"
            )
        return num_written

    def get_item(self, table_name: str, key: ItemKey) -> ty.Optional[Item]:
        """Returns None if there is no item with this key. The key must
        have exactly the table's key attributes."""
        items = self._table_items(table_name)
        hashable_key = validate_item_key(
            items.table.key_schema, key, table_name=table_name, exact=True
        )
        wire = items.get(hashable_key)
        return deserialize_item(wire) if wire is not None else None

    def require_item(
        self, table_name: str, key: ItemKey, *, nicename: str = DEFAULT_ITEM_NAME
    ) -> Item:
        """get_item, but raises {nicename}NotFoundException instead of returning None."""
        nicename = nicename or DEFAULT_ITEM_NAME
        item = self.get_item(table_name, key)
        if item is None:
            key_value = next(iter(key.values())) if len(key) == 1 else key
            raise get_item_exception_type(nicename, ItemNotFoundException)(
                f"{nicename} '{key_value}' does not exist!", key=key, table_name=table_name
            )
        return item

    def delete_item(self, table_name: str, key: ItemKey) -> ty.Optional[Item]:
        """Idempotent. Returns the deleted item, if there was one."""
        items = self._table_items(table_name)
        hashable_key = validate_item_key(
            items.table.key_schema, key, table_name=table_name, exact=True
        )
        logger.debug(f"DeleteItem {key} from table {table_name}")
        previous = items.delete(hashable_key)
        return deserialize_item(previous) if previous is not None else None

    def delete_items(self, table_name: str, keys: ty.Iterable[ItemKey]) -> int:
        """Returns the number of items that actually existed."""
        return sum(1 for key in keys if self.delete_item(table_name, key) is not None)

    def _scan_partitions(
        self,
        table_name: str,
        select: ty.Callable[[Partitions], ty.Iterable[Partition]],
        predicate: ty.Optional[Predicate],
    ) -> Reiterable[Item]:
        self._table_items(table_name)  # fail now, not on first iteration

        def generate_items() -> ty.Iterator[Item]:
            for partition in select(self._table_items(table_name).snapshot()):
                for wire in partition.values():
                    item = deserialize_item(wire)
                    if predicate is None or predicate(item):
                        yield item

        return Reiterable(generate_items)

    def scan(self, table_name: str, predicate: ty.Optional[Predicate] = None) -> Reiterable[Item]:
        """Every item in the table for which the predicate holds.

        The order of items is an implementation detail and you should
        not depend on it. Each iteration works from a snapshot taken
        when the iteration starts; writes that happen while you iterate
        will not show up until you iterate again.
        """
        return self._scan_partitions(table_name, lambda partitions: partitions.values(), predicate)

    def scan_partition(
        self,
        table_name: str,
        hash_value: KeyAttributeType,
        predicate: ty.Optional[Predicate] = None,
    ) -> Reiterable[Item]:
        """Like scan, but only reads the items sharing one hash key value."""
        schema = self.catalog.describe_table(table_name)
        hash_key = validate_item_key(
            schema[:1], {schema[0].name: hash_value}, table_name=table_name
        )[0]

        def select(partitions: Partitions) -> ty.Iterable[Partition]:
            partition = partitions.get(hash_key)
            return [partition] if partition else []

        return self._scan_partitions(table_name, select, predicate)

    def item_count(self, table_name: str) -> int:
        return sum(len(p) for p in self._table_items(table_name).snapshot().values())

    def drop_table(self, table: TableDefinition) -> None:
        """Forget the items of a deleted table. The catalog decides whether
        the table exists; this only frees the memory.

        A table of the same name may already have been created again, so
        only the items of this particular table are dropped.
        """
        with self._lock:
            items = self._tables.get(table.name)
            if items is not None and items.table is table:
                del self._tables[table.name]
