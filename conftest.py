import pytest

from tinydynamo.database import Database
from tests.tinydynamo.testing_utils import (
    PRODUCT_CATALOG,
    PRODUCTS,
    make_default_table_putter,
)


@pytest.fixture
def db() -> Database:
    return Database()


@pytest.fixture
def product_catalog(db: Database) -> str:
    db.create_table(PRODUCT_CATALOG, [("id", "N")], throughput=dict(read=10, write=5))
    db.put_items(PRODUCT_CATALOG, PRODUCTS)
    return PRODUCT_CATALOG


@pytest.fixture
def orders(db: Database) -> str:
    """A hash + range table: customer orders by order date."""
    db.create_table("orders", [("customer", "S"), ("ordered_at", "S")])
    db.put_items(
        "orders",
        [
            dict(customer="alice", ordered_at="2024-01-01", total=10),
            dict(customer="alice", ordered_at="2024-02-01", total=250),
            dict(customer="alice", ordered_at="2024-03-01", total=40),
            dict(customer="bob", ordered_at="2024-01-15", total=99),
        ],
    )
    return "orders"


default_product_put = make_default_table_putter(PRODUCT_CATALOG)
