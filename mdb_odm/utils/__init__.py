"""
Utility functions and helpers for MDB_ODM.
"""

from .mongo import id_candidates, id_filter, new_id, stringify_id

__all__ = ["id_candidates", "id_filter", "new_id", "stringify_id"]
