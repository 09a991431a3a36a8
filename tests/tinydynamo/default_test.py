from boto3.dynamodb.conditions import Attr, Key

import tinydynamo.default as ddb
from tinydynamo.database import Database


def test_module_functions_share_one_database(default_product_put):
    default_product_put(dict(id=101, title="Book 101 Title", price=2))
    default_product_put(dict(id=103, title="Book 103 Title", price=2000))

    assert isinstance(ddb.default_database(), Database)
    assert ddb.default_database() is ddb.default_database()
    assert list(ddb.list_tables()) == ["product-catalog"]
    assert ddb.get_item("product-catalog", dict(id=101))["title"] == "Book 101 Title"
    assert [i["id"] for i in ddb.scan("product-catalog", Attr("price").gt(1000))] == [103]
    assert ddb.plan("product-catalog", Key("id").eq(101)).kind == "get"
    assert [i["id"] for i in ddb.query("product-catalog", Key("id").eq(101))] == [101]


def test_reset_throws_everything_away(default_product_put):
    default_product_put(dict(id=101))
    before = ddb.default_database()

    ddb.reset_default_database()

    assert ddb.default_database() is not before
    assert list(ddb.list_tables()) == []


def test_module_functions_look_like_the_methods():
    assert ddb.scan.__name__ == "scan"
    assert ddb.scan.__doc__ == Database.scan.__doc__
