"""
Schema and vector index provisioning for the Oracle vector store.

Creates the backing table and, when configured, an approximate search
index. Runs once per store before any reads or writes; callers must not
run it concurrently.
"""

import structlog

from oracle_vectorstore.observability.metrics import MetricsCollector, get_metrics
from oracle_vectorstore.storage.database import Database, error_code
from oracle_vectorstore.vectorstore.defaults import (
    DistanceType,
    IndexType,
    coerce_accuracy,
)
from oracle_vectorstore.vectorstore.errors import SchemaError

logger = structlog.get_logger(__name__)

# ORA-00942: table or view does not exist
ORA_TABLE_NOT_FOUND = 942
# ORA-00955: name is already used by an existing object
ORA_NAME_ALREADY_USED = 955

INDEX_ORGANIZATIONS = {
    IndexType.HNSW: "ORGANIZATION INMEMORY NEIGHBOR GRAPH",
    IndexType.IVF: "ORGANIZATION NEIGHBOR PARTITIONS",
}


def index_name(index_type: IndexType, table_name: str) -> str:
    """Deterministic vector index name, e.g. hnsw_vector_store_idx."""
    return f"{index_type.value.lower()}_{table_name.lower()}_idx"


class VectorSchemaManager:
    """
    Idempotent DDL for the vector table and its vector index.

    Table columns:
        id          varchar2(36) primary key
        text        clob
        embeddings  vector(<dimensions>, FLOAT32)
        metadata    json
    """

    def __init__(
        self,
        database: Database,
        table_name: str,
        distance_type: DistanceType,
        index_type: IndexType,
        accuracy: int,
        remove_existing_table: bool = False,
        metrics: MetricsCollector | None = None,
    ):
        self._db = database
        self._table = table_name
        self._distance_type = distance_type
        self._index_type = index_type
        self._accuracy = coerce_accuracy(accuracy)
        self._remove_existing_table = remove_existing_table
        self._metrics = metrics or get_metrics()

    @property
    def accuracy(self) -> int:
        return self._accuracy

    async def initialize(self, dimensions: int) -> None:
        """
        Provision the table and optional index.

        Args:
            dimensions: Embedding dimensionality for the vector column

        Raises:
            SchemaError: On any DDL failure other than "table does not exist"
                (when dropping) or "name already used" (when creating the table)
        """
        if self._remove_existing_table:
            await self._drop_table()

        await self._create_table(dimensions)

        if self._index_type != IndexType.NONE:
            await self._create_index()

    async def _drop_table(self) -> None:
        logger.debug(
            "Dropping table because remove_existing_table is set",
            table=self._table,
        )
        try:
            await self._db.execute(f"DROP TABLE {self._table} CASCADE CONSTRAINTS")
            self._metrics.record_schema_operation("drop_table", "dropped")
        except Exception as e:
            if error_code(e) == ORA_TABLE_NOT_FOUND:
                logger.debug("Table did not exist, nothing to drop", table=self._table)
                return
            self._metrics.record_schema_operation("drop_table", "failed")
            logger.error("Error dropping table", table=self._table, error=str(e))
            raise SchemaError(
                f"Failed to drop table {self._table}: {e}",
                table=self._table,
                ora_code=error_code(e),
            ) from e

    def create_table_sql(self, dimensions: int) -> str:
        return f"""
            CREATE TABLE {self._table} (
                id varchar2(36),
                text clob,
                embeddings vector({dimensions}, FLOAT32),
                metadata json,
                primary key (id)
            )
        """

    async def _create_table(self, dimensions: int) -> None:
        try:
            await self._db.execute(self.create_table_sql(dimensions))
            self._metrics.record_schema_operation("create_table", "created")
            logger.info("Created table", table=self._table, dimensions=dimensions)
        except Exception as e:
            if error_code(e) == ORA_NAME_ALREADY_USED:
                self._metrics.record_schema_operation("create_table", "reused")
                logger.info("Using existing table", table=self._table)
                return
            self._metrics.record_schema_operation("create_table", "failed")
            logger.error("Error creating table", table=self._table, error=str(e))
            raise SchemaError(
                f"Failed to create table {self._table}: {e}",
                table=self._table,
                ora_code=error_code(e),
            ) from e

    def create_index_sql(self) -> str:
        """CREATE VECTOR INDEX statement for the configured index type."""
        organization = INDEX_ORGANIZATIONS.get(self._index_type)
        if organization is None:
            raise SchemaError(
                f"No vector index organization for index type {self._index_type.value}",
                table=self._table,
            )

        return f"""
            CREATE VECTOR INDEX IF NOT EXISTS {index_name(self._index_type, self._table)}
            ON {self._table} (embeddings)
            {organization}
            WITH DISTANCE {self._distance_type.value}
            WITH TARGET ACCURACY {self._accuracy}
        """

    async def _create_index(self) -> None:
        name = index_name(self._index_type, self._table)
        sql = self.create_index_sql()
        try:
            await self._db.execute(sql)
            self._metrics.record_schema_operation("create_index", "created")
            logger.info(
                "Created vector index",
                index=name,
                index_type=self._index_type.value,
                distance=self._distance_type.value,
                accuracy=self._accuracy,
            )
        except Exception as e:
            self._metrics.record_schema_operation("create_index", "failed")
            logger.error("Error creating index", index=name, error=str(e))
            raise SchemaError(
                f"Failed to create vector index {name}: {e}",
                table=self._table,
                ora_code=error_code(e),
            ) from e
