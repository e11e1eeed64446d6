"""
Database helpers outside the batch hot path.

Collection discovery for autocomplete and credential connectivity tests.
"""

from .connectivity import test_connection
from .discovery import list_collection_options

__all__ = [
    "list_collection_options",
    "test_connection",
]
