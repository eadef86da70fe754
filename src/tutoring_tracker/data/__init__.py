from .database import Database
from .tables import (
    KID_PROFILES,
    PROGRESS_ENTRIES,
    RestTable,
    SqliteTable,
    Table,
    TableError,
    create_table,
)

__all__ = [
    "Database",
    "KID_PROFILES",
    "PROGRESS_ENTRIES",
    "RestTable",
    "SqliteTable",
    "Table",
    "TableError",
    "create_table",
]
