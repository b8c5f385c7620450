"""Storage addressing for limits and usage buckets.

An identity's string form is split into a shard-selecting prefix (all but the
last two characters) and a shard-local suffix (the last two characters).
Every field for one identity therefore lives in the same hash record:

    identity 1234, limit          -> ("SL12", "34")
    identity 1234, 2015, month 3  -> ("SL12", "3420153")

The layout is shared with data written by earlier deployments; do not change
it without a migration.
"""

from __future__ import annotations

from typing import Any, NamedTuple

DEFAULT_TAG = "SL"


class StorageKey(NamedTuple):
    """Address of a single counter: hash key plus field within it."""

    shard: str
    field: str


def _split_identity(identity: Any) -> tuple[str, str]:
    text = str(identity)
    return text[:-2], text[-2:]


def limit_key(identity: Any, tag: str = DEFAULT_TAG) -> StorageKey:
    """Return the address of an identity's limit field."""
    prefix, local = _split_identity(identity)
    return StorageKey(shard=tag + prefix, field=local)


def usage_key(identity: Any, year: int, month: int, tag: str = DEFAULT_TAG) -> StorageKey:
    """Return the address of one (year, month) usage bucket.

    Args:
        identity: User or application identifier.
        year: Calendar year.
        month: Canonical month (already normalized to 1..12).
        tag: Shard key prefix.
    """
    prefix, local = _split_identity(identity)
    return StorageKey(shard=tag + prefix, field=f"{local}{year}{month}")
