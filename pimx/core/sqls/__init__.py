"""
SQL statements module
"""

from . import queries, schema

__all__ = ["queries", "schema"]
