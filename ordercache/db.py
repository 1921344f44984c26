from typing import Optional
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from ordercache.config import settings

class Base(DeclarativeBase):
    pass

def _enable_sqlite_fks(dbapi_conn, _record):
    # SQLite ignores REFERENCES / ON DELETE CASCADE unless asked per connection.
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()

def make_engine(url: Optional[str] = None, schema: Optional[str] = None) -> Engine:
    url = url or settings.DATABASE_URL
    engine = create_engine(url, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_fks)
        return engine

    schema = schema if schema is not None else settings.DB_SCHEMA
    if schema:
        # Models are declared schema-less; route them into the configured schema.
        engine = engine.execution_options(schema_translate_map={None: schema})
    return engine

def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

def schema_name(engine: Engine) -> Optional[str]:
    """Schema the order tables live in; None means the dialect default."""
    translate = engine.get_execution_options().get("schema_translate_map") or {}
    return translate.get(None)
