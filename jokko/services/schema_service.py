# jokko/services/schema_service.py
import logging
from typing import Any

from sqlalchemy import func, inspect, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from jokko.repositories.connection_repo import ConnectionSchema

logger = logging.getLogger(__name__)


class SchemaService:
    """
    Describes the live database: tables, their columns and row counts.
    """

    def describe(
        self,
        session: Session,
        engine: Engine,
        connection_schema: ConnectionSchema | None,
    ) -> dict[str, Any]:
        inspector = inspect(engine)
        tables: dict[str, Any] = {}

        for name in sorted(inspector.get_table_names()):
            columns = [
                {
                    "name": col["name"],
                    "type": str(col["type"]),
                    "nullable": col.get("nullable", True),
                }
                for col in inspector.get_columns(name)
            ]
            try:
                row_count = session.exec(select(func.count()).select_from(table(name))).one()
            except SQLAlchemyError as e:
                session.rollback()
                logger.warning("Row count failed for table %s: %s", name, e)
                row_count = None

            tables[name] = {"columns": columns, "rowCount": row_count}

        return {
            "tables": tables,
            "connectionSchema": connection_schema.value if connection_schema else None,
        }
