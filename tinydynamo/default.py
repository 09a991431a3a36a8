"""The process-wide Database, and module-level functions that use it.

    import tinydynamo.default as ddb

    ddb.create_table("product-catalog", [("id", "N")])
    ddb.put_item("product-catalog", dict(id=101, title="Book 101 Title"))

The Database is created on first use and lives until the process exits.
"""
import typing as ty
from logging import getLogger

from .database import Database
from .utils.lazy import Lazy

logger = getLogger(__name__)

default_database = Lazy(Database)


def reset_default_database() -> None:
    """Throws away every table. Mostly for tests."""
    logger.info("Resetting the default tinydynamo Database")
    default_database.reset()


def _bound(method_name: str) -> ty.Callable:
    method = getattr(Database, method_name)

    def call_on_default_database(*args, **kwargs):
        return getattr(default_database(), method_name)(*args, **kwargs)

    call_on_default_database.__name__ = method_name
    call_on_default_database.__qualname__ = method_name
    call_on_default_database.__doc__ = method.__doc__
    return call_on_default_database


create_table = _bound("create_table")
delete_table = _bound("delete_table")
list_tables = _bound("list_tables")
describe_table = _bound("describe_table")
get_table = _bound("get_table")
put_item = _bound("put_item")
put_unless_exists = _bound("put_unless_exists")
put_items = _bound("put_items")
get_item = _bound("get_item")
require_item = _bound("require_item")
delete_item = _bound("delete_item")
delete_items = _bound("delete_items")
item_count = _bound("item_count")
scan = _bound("scan")
scan_partition = _bound("scan_partition")
query = _bound("query")
plan = _bound("plan")
