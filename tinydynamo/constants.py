import os

MAX_ITEM_SIZE_BYTES = int(os.environ.get("TINYDYNAMO_MAX_ITEM_SIZE_BYTES", 64 * 1024))
# includes attribute names. UTF-8 for strings.

LOCK_STRIPES = int(os.environ.get("TINYDYNAMO_LOCK_STRIPES", 64))
# writer locks per table. writers of the same hash key always share one.

MAX_HASH_KEY_LEN = 2048
MAX_RANGE_KEY_LEN = 1024
# bytes in UTF-8 encoding.
# https://docs.aws.amazon.com/amazondynamodb/latest/developerguide/Limits.html#limits-partition-sort-keys

MAX_NUMBER_PRECISION = 38
# significant digits

DEFAULT_ITEM_NAME = "Item"
# used for naming generated exception types
