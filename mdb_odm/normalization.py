"""
Attribute normalization for write paths.

Turns the attributes of a model (or a plain dict) into the canonical document
shape that gets inserted or upserted.
"""

import time
from typing import Any

from .constants import (CREATED_AT_FIELD, ID_FIELD, INTERNAL_ID_FIELD,
                        UPDATED_AT_FIELD)
from .utils.mongo import new_id


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def normalize_attributes(attributes: dict[str, Any]) -> dict[str, Any]:
    """
    Build the document to store from `attributes`.

    - a missing or empty `id` is replaced by a freshly minted one
    - the identifier moves from `id` to `_id`
    - a missing `created_at` is set to now
    - a missing `updated_at` is set to None ("never updated")

    The input mapping is not modified.
    """
    document = dict(attributes)

    identifier = document.pop(ID_FIELD, None) or document.get(INTERNAL_ID_FIELD) or new_id()
    document[INTERNAL_ID_FIELD] = identifier

    if not document.get(CREATED_AT_FIELD):
        document[CREATED_AT_FIELD] = now_millis()

    if not document.get(UPDATED_AT_FIELD):
        document[UPDATED_AT_FIELD] = None

    return document
