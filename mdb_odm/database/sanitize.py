"""
Operator-injection sanitizer.

Untrusted values (login forms, query-string parameters) must not be able to
smuggle MongoDB operators into a filter: `{"password": {"$ne": 1}}` would
otherwise match every user. `sanitize` strips every key that starts with
`$`, at every nesting level, including dictionaries inside lists.
"""

from typing import Any

from ..constants import OPERATOR_PREFIX


def sanitize(value: Any) -> Any:
    """
    Return a copy of `value` without operator keys.

    Scalars (and None) are returned unchanged. A mapping whose only keys are
    operators becomes an empty dict, not None, so the constraint stays in
    place and simply can no longer be widened.

    Example:
        >>> sanitize({"password": {"$ne": 1}, "username": "tim"})
        {'password': {}, 'username': 'tim'}
    """
    if isinstance(value, dict):
        return {
            key: sanitize(item)
            for key, item in value.items()
            if not (isinstance(key, str) and key.startswith(OPERATOR_PREFIX))
        }
    if isinstance(value, list):
        return [sanitize(item) for item in value]
    if isinstance(value, tuple):
        return tuple(sanitize(item) for item in value)
    return value
