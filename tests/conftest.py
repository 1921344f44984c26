import pytest
from ordercache.db import make_engine
from ordercache.schema_manager import ensure_schema
from ordercache.store import OrderStore
from ordercache.cache import OrderCache
from ordercache.pipeline import IngestionPipeline

@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'orders.sqlite3'}"

@pytest.fixture
def engine(db_url):
    eng = make_engine(db_url)
    ensure_schema(eng)
    yield eng
    eng.dispose()

@pytest.fixture
def store(engine):
    return OrderStore(engine)

@pytest.fixture
def cache():
    return OrderCache()

@pytest.fixture
def pipeline(store, cache):
    return IngestionPipeline(store, cache)
