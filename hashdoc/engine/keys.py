"""
HashDoc Key Scheme — Redis key names for one collection.

    {dbname}:{key}            primary hash (document fields)
    {dbname}:{key}:attaches   attachment hash (one field per attachment)
    {dbname}:ids              id-set (persistent collections only)
"""

from __future__ import annotations

from hashdoc.engine.errors import MissingKeyError

ATTACHMENT_SUFFIX = "attaches"
IDS_SUFFIX = "ids"


def _require_key(dbname: str, key: str) -> None:
    if not key:
        raise MissingKeyError(
            "a non-empty document key is required", dbname=dbname, operation="key"
        )


def hash_key(dbname: str, key: str) -> str:
    """Primary hash key for a document."""
    _require_key(dbname, key)
    return f"{dbname}:{key}"


def attachment_key(dbname: str, key: str) -> str:
    """Attachment hash key for a document."""
    _require_key(dbname, key)
    return f"{dbname}:{key}:{ATTACHMENT_SUFFIX}"


def ids_key(dbname: str) -> str:
    """Id-set key for a collection."""
    return f"{dbname}:{IDS_SUFFIX}"
