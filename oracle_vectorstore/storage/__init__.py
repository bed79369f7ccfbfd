"""Storage layer for Oracle Database access."""

from oracle_vectorstore.storage.database import (
    Database,
    close_database,
    error_code,
    get_database,
)

__all__ = ["Database", "close_database", "error_code", "get_database"]
