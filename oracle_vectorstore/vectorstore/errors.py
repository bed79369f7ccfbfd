"""Exceptions raised by vector store operations."""


class VectorStoreError(Exception):
    """
    Base exception for vector store errors.

    Attributes:
        table: Backing table the operation targeted
        ora_code: ORA- error number from the database, when available
    """

    def __init__(
        self,
        message: str,
        table: str | None = None,
        ora_code: int | None = None,
    ):
        super().__init__(message)
        self.table = table
        self.ora_code = ora_code


class SchemaError(VectorStoreError):
    """DDL failed during initialization; the store must not be used."""

    pass


class WriteError(VectorStoreError):
    """A batched upsert or delete failed; the whole call is considered failed."""

    pass


class SearchExecutionError(VectorStoreError):
    """The similarity query failed in the database (distinct from an empty result)."""

    pass
