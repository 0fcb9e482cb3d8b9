"""
Database package for Caretaker.

Public API:
    - database: Global Database instance (connection + schema lifecycle)
    - db_connection: The shared aiosqlite ConnectionManager
"""
