from typing import Dict
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ordercache.db import schema_name
from ordercache.errors import SchemaError
from ordercache.log import get_logger
from ordercache.models import TABLES

logger = get_logger(__name__)

def ensure_table(engine: Engine, name: str) -> bool:
    """Create table ``name`` if it does not exist yet.

    Returns True when the table was created, False when it was already there.
    """
    table = TABLES.get(name)
    if table is None:
        raise SchemaError(f"Unknown table '{name}'", {"table": name, "known": list(TABLES)})

    schema = schema_name(engine)
    try:
        if inspect(engine).has_table(name, schema=schema):
            logger.info("table exists", table=name, schema=schema)
            return False
        logger.info("table does not exist, creating", table=name, schema=schema)
        table.create(bind=engine, checkfirst=True)
    except SQLAlchemyError as e:
        logger.error("table creation failed", table=name, schema=schema, error=str(e))
        raise SchemaError(f"Could not ensure table '{name}'", {"table": name, "error": str(e)}) from e
    return True

def ensure_schema(engine: Engine) -> Dict[str, bool]:
    return {name: ensure_table(engine, name) for name in TABLES}
