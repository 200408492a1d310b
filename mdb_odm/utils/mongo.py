"""
MongoDB identifier helpers for MDB_ODM.

Documents created through the mapper carry a string `_id` (the hex form of a
freshly minted ObjectId); documents inserted by other tools usually carry a
native ObjectId. These helpers let callers treat both the same way.
"""

from typing import Any

from bson import ObjectId

from ..constants import INTERNAL_ID_FIELD


def new_id() -> str:
    """Mint a new globally unique identifier string."""
    return str(ObjectId())


def stringify_id(value: Any) -> Any:
    """
    Convert a stored `_id` to the public string form.

    ObjectId values become their 24 character hex string, strings pass
    through, None stays None.
    """
    if value is None or isinstance(value, str):
        return value
    return str(value)


def id_candidates(identifier: Any) -> list[Any]:
    """
    Return every stored form `identifier` may have.

    Example:
        >>> id_candidates("5f3568f2a0cdd1c9ba411c43")
        [ObjectId('5f3568f2a0cdd1c9ba411c43'), '5f3568f2a0cdd1c9ba411c43']
        >>> id_candidates("my-custom-id")
        ['my-custom-id']
    """
    if isinstance(identifier, str) and ObjectId.is_valid(identifier):
        return [ObjectId(identifier), identifier]
    return [identifier]


def id_filter(identifier: Any) -> dict[str, Any]:
    """Build a filter matching `identifier` as a native ObjectId or a raw string."""
    candidates = id_candidates(identifier)
    if len(candidates) == 1:
        return {INTERNAL_ID_FIELD: candidates[0]}
    return {INTERNAL_ID_FIELD: {"$in": candidates}}
