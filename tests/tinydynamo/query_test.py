from decimal import Decimal

import pytest
from boto3.dynamodb.conditions import Attr, Key

from tinydynamo.query import QueryPlan, compile_condition, plan, set_contains
from tinydynamo.types import KeyAttribute

ID_SCHEMA = (KeyAttribute("id", "N"),)
ORDER_SCHEMA = (KeyAttribute("customer", "S"), KeyAttribute("ordered_at", "S"))

BOOK = dict(
    id=Decimal(102),
    title="Book 102 Title",
    authors={"Author1", "Author2"},
    price=Decimal(20),
    cover=b"\x89PNG",
)


def matches(condition) -> bool:
    return compile_condition(condition)(BOOK)


def test_comparisons_only_hold_between_values_of_the_same_type():
    assert matches(Attr("price").eq(20))
    assert matches(Attr("price").lt(20.5))
    assert matches(Attr("price").lte(20))
    assert matches(Attr("price").gte(Decimal("20.0")))
    assert not matches(Attr("price").gt("1000"))
    assert not matches(Attr("price").eq("20"))
    assert matches(Attr("title").gt("Book 101"))


def test_missing_attributes_fail_everything_but_ne():
    assert not matches(Attr("page_count").eq(600))
    assert not matches(Attr("page_count").lt(600))
    assert not matches(Attr("page_count").between(1, 1000))
    assert matches(Attr("page_count").ne(600))
    assert matches(Attr("price").ne("20"))
    assert not matches(Attr("price").ne(20))


def test_existence_and_type():
    assert matches(Attr("authors").exists())
    assert matches(Attr("page_count").not_exists())
    assert matches(Attr("authors").attribute_type("SS"))
    assert matches(Attr("cover").attribute_type("B"))
    assert not matches(Attr("price").attribute_type("S"))


def test_between_begins_with_and_in():
    assert matches(Attr("price").between(10, 20))
    assert not matches(Attr("price").between(21, 30))
    assert matches(Attr("title").begins_with("Book 1"))
    assert matches(Attr("cover").begins_with(b"\x89"))
    assert not matches(Attr("price").begins_with("2"))
    assert matches(Attr("id").is_in([101, 102, 103]))
    assert not matches(Attr("id").is_in(["102"]))


def test_contains_works_on_strings_and_sets():
    assert matches(Attr("title").contains("102"))
    assert matches(Attr("authors").contains("Author2"))
    assert not matches(Attr("authors").contains("Author3"))
    assert not matches(Attr("authors").contains(2))
    assert not matches(Attr("price").contains(2))


def test_size():
    assert matches(Attr("authors").size().eq(2))
    assert matches(Attr("title").size().gt(10))
    assert not matches(Attr("page_count").size().gte(0))


def test_boolean_combinations():
    assert matches(Attr("price").lt(100) & Attr("authors").contains("Author1"))
    assert matches(Attr("price").gt(100) | Attr("authors").contains("Author1"))
    assert matches(~Attr("price").gt(100))
    assert not matches(~(Attr("price").lt(100) & Attr("title").exists()))


def test_attributes_may_be_compared_to_each_other():
    assert compile_condition(Attr("a").lt(Attr("b")))(dict(a=1, b=2))
    assert not compile_condition(Attr("a").eq(Attr("b")))(dict(a=1))


def test_only_conditions_compile():
    with pytest.raises(ValueError):
        compile_condition(lambda item: True)  # type: ignore


def test_set_contains():
    colors = dict(colors={"Red", "Black"})
    assert compile_condition(set_contains("colors", ["Red", "Black"]))(colors)
    assert not compile_condition(set_contains("colors", ["Red", "Green"]))(colors)
    assert compile_condition(set_contains("colors", ["Red", "Green"], AND=False))(colors)
    with pytest.raises(ValueError):
        set_contains("colors", [])


def test_plans():
    assert plan(ID_SCHEMA, Key("id").eq(101)) == QueryPlan("get", 101, dict(id=101))
    assert plan(ID_SCHEMA, Attr("price").gt(1) & Key("id").eq(101)).kind == "get"
    assert plan(ID_SCHEMA, Attr("price").gt(1000)).kind == "scan"
    assert plan(ID_SCHEMA, Key("id").eq(101) | Key("id").eq(102)).kind == "scan"
    assert plan(ID_SCHEMA, ~Key("id").eq(101)).kind == "scan"
    assert plan(ID_SCHEMA, Key("id").gt(101)).kind == "scan"
    assert plan(ID_SCHEMA, Attr("id").size().eq(3)).kind == "scan"

    assert plan(ORDER_SCHEMA, Key("customer").eq("alice")) == QueryPlan("partition", "alice")
    assert plan(
        ORDER_SCHEMA, Key("customer").eq("alice") & Key("ordered_at").begins_with("2024")
    ) == QueryPlan("partition", "alice")
    assert plan(ORDER_SCHEMA, Key("ordered_at").eq("2024-01-01")).kind == "scan"
    assert plan(
        ORDER_SCHEMA, Key("customer").eq("alice") & Key("ordered_at").eq("2024-01-01")
    ).kind == "get"


def test_values_that_cannot_be_keys_are_not_routed():
    assert plan(ID_SCHEMA, Key("id").eq("101")).kind == "scan"
    assert plan(ORDER_SCHEMA, Key("customer").eq("")).kind == "scan"


def test_query_matches_a_filtered_scan(db, product_catalog):
    conditions = [
        Key("id").eq(103),
        Key("id").eq(103) & Attr("price").lt(1000),
        Key("id").eq("103"),
        Attr("price").gt(1000),
        Attr("product_category").eq("Bicycle") & Attr("price").between(150, 450),
        set_contains("colors", ["Red", "Black"]),
    ]
    for condition in conditions:
        queried = sorted(item["id"] for item in db.query(product_catalog, condition))
        scanned = sorted(item["id"] for item in db.scan(product_catalog, condition))
        assert queried == scanned

    assert [i["id"] for i in db.query(product_catalog, Key("id").eq(103))] == [103]
    assert list(db.query(product_catalog, Key("id").eq(103) & Attr("price").lt(1000))) == []
    assert sorted(
        i["id"] for i in db.query(product_catalog, set_contains("colors", ["Red", "Black"]))
    ) == [201, 203, 205]


def test_partition_queries(db, orders):
    alice = Key("customer").eq("alice")
    assert db.plan(orders, alice).kind == "partition"
    assert sorted(o["total"] for o in db.query(orders, alice & Attr("total").gt(20))) == [40, 250]
    assert list(db.query(orders, Key("customer").eq("carol"))) == []
