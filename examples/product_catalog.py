#!/usr/bin/env python
"""A walk through the tinydynamo data model using a small product catalog.

Tables hold items, items hold attributes, and an item may be no larger
than 64KB, including its attribute names. Only Numbers, Strings,
Binaries, and sets of each are supported - anything else has to be
frozen into bytes by you.
"""
import argparse
import json
from pprint import pprint

from boto3.dynamodb.conditions import Attr, Key

from tinydynamo.database import Database
from tinydynamo.exceptions import ItemTooLargeException, UnsupportedValueTypeException


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--table-name", default="product-catalog")
    parser.add_argument(
        "--max-price", type=int, default=1000, help="anything pricier is a pricing error"
    )
    args = parser.parse_args()

    db = Database()
    print(list(db.list_tables()))

    # capacity is only a hint here; nothing is throttled
    db.create_table(args.table_name, [("id", "N")], throughput=dict(read=10, write=5))

    try:
        db.put_item(args.table_name, dict(id=101, title="Book 101 Title", authors=["Author1"]))
    except UnsupportedValueTypeException as uvte:
        print(f"No lists allowed: {uvte}")

    # a set will do
    db.put_item(args.table_name, dict(id=101, title="Book 101 Title", authors={"Author1"}))
    pprint(db.get_item(args.table_name, dict(id=101)))

    # and for anything else, freeze it into bytes. note this overwrites the whole item.
    authors = [dict(first_name="Author", last_name="One")]
    db.put_item(
        args.table_name,
        dict(id=101, title="Book 101 Title", authors=json.dumps(authors).encode()),
    )
    pprint(json.loads(db.get_item(args.table_name, dict(id=101))["authors"]))

    try:
        db.put_item(args.table_name, dict(id=0, big_attr="x" * 100000))
    except ItemTooLargeException as itle:
        print(itle)

    db.put_items(
        args.table_name,
        [
            dict(id=102, title="Book 102 Title", authors={"Author1", "Author2"}, price=20),
            dict(id=103, title="Book 103 Title", authors={"Author1", "Author2"}, price=2000),
            dict(id=201, title="18-Bike-201", colors={"Red", "Black"}, price=100),
            dict(id=202, title="21-Bike-202", colors={"Green", "Black"}, price=200),
        ],
    )

    # a condition on anything but the hash key reads every item in the table
    too_expensive = Attr("price").gt(args.max_price)
    print(db.plan(args.table_name, too_expensive))
    for item in db.scan(args.table_name, too_expensive):
        pprint(item)

    # whereas the hash key goes straight to the item
    by_id = Key("id").eq(202)
    print(db.plan(args.table_name, by_id))
    pprint(list(db.query(args.table_name, by_id)))

    db.delete_item(args.table_name, dict(id=103))
    db.delete_item(args.table_name, dict(id=103))  # still fine
    print(db.item_count(args.table_name))


if __name__ == "__main__":
    main()
