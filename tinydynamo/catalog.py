"""The set of tables and their definitions.

A table goes from absent to ACTIVE when it is created and back to
absent when it is deleted. Definitions never change in between.
"""
import threading
import typing as ty
from datetime import datetime, timezone
from logging import getLogger

from .exceptions import TableAlreadyExistsException, TableNotFoundException
from .keys import KeyAttributeInput, parse_key_schema
from .types import KeySchema, TableDefinition, Throughput
from .utils.iter import Reiterable

logger = getLogger(__name__)


def _throughput(throughput: ty.Any) -> Throughput:
    """Advisory only. Accepts a Throughput, a (read, write) pair, or
    a mapping like {"read": 10, "write": 5}."""
    if not throughput:
        return Throughput()
    if isinstance(throughput, ty.Mapping):
        return Throughput(**throughput)
    return Throughput(*throughput)


class TableCatalog:
    def __init__(self):
        self._lock = threading.Lock()
        self._tables: ty.Dict[str, TableDefinition] = dict()
        # dicts keep insertion order, which is creation order here

    def create_table(
        self,
        name: str,
        key_schema: ty.Sequence[KeyAttributeInput],
        throughput: ty.Any = None,
        block_until_ready: bool = True,
    ) -> TableDefinition:
        """Creation is synchronous, so the table is ACTIVE as soon as this
        returns whether or not you asked to block."""
        if not isinstance(name, str) or not name:
            raise ValueError(f"Table name must be a non-empty string; got {name!r}")
        table = TableDefinition(
            name=name,
            key_schema=parse_key_schema(key_schema, table_name=name),
            throughput=_throughput(throughput),
            created_at=datetime.now(timezone.utc),
        )
        if not block_until_ready:
            logger.warning(
                f"Table {name} is created synchronously; block_until_ready has no effect"
            )
        with self._lock:
            if name in self._tables:
                raise TableAlreadyExistsException(
                    f"Table '{name}' already exists", table_name=name
                )
            self._tables[name] = table
        logger.info(
            f"Created table {name}",
            extra=dict(json=dict(key_schema=[tuple(k) for k in table.key_schema])),
        )
        return table

    def get_table(self, name: str) -> TableDefinition:
        try:
            return self._tables[name]
        except KeyError:
            raise TableNotFoundException(f"Table '{name}' does not exist!", table_name=name)

    def describe_table(self, name: str) -> KeySchema:
        return self.get_table(name).key_schema

    def has_table(self, name: str) -> bool:
        return name in self._tables

    def list_tables(self) -> Reiterable[str]:
        """Table names in creation order. Each iteration reflects the
        tables that exist when it starts."""
        return Reiterable(lambda: iter(list(self._tables)))

    def delete_table(self, name: str) -> TableDefinition:
        with self._lock:
            try:
                table = self._tables.pop(name)
            except KeyError:
                raise TableNotFoundException(f"Table '{name}' does not exist!", table_name=name)
        logger.info(f"Deleted table {name}")
        return table
