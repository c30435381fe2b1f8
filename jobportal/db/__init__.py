"""
Database module - relational store connection and schema.
"""
from jobportal.db.postgres import get_db_session, create_tables, check_database_connection

__all__ = [
    "get_db_session",
    "create_tables",
    "check_database_connection"
]
