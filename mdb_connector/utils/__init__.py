"""
Utility functions and helpers for MDB Connector.
"""

from .mongo import (coerce_id_filter, loads_json, render_document,
                    render_documents, render_id, render_value)

__all__ = [
    "coerce_id_filter",
    "loads_json",
    "render_document",
    "render_documents",
    "render_id",
    "render_value",
]
