from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from ordercache.cache import OrderCache
from ordercache.config import Settings, settings as default_settings
from ordercache.db import make_engine
from ordercache.errors import OrderCacheError, OrderValidationError, StoreConflict
from ordercache.log import configure_logging, get_logger
from ordercache.pipeline import IngestionPipeline, IngestState
from ordercache.schema_manager import ensure_schema
from ordercache.store import OrderStore

logger = get_logger(__name__)

router = APIRouter()

def get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline

def get_cache(request: Request) -> OrderCache:
    return request.app.state.cache

@router.post("/order")
def submit_order(document: Any = Body(...), pipeline: IngestionPipeline = Depends(get_pipeline)):
    result = pipeline.submit_document(document)
    if result.state is IngestState.DUPLICATE:
        raise StoreConflict(result.order_uid)
    if result.state is IngestState.FAILED:
        raise result.error
    return {"status": "stored", "order_uid": result.order_uid}

@router.get("/orders")
def list_orders(cache: OrderCache = Depends(get_cache)):
    return [o.model_dump() for o in cache.snapshot()]

@router.get("/health")
def health(cache: OrderCache = Depends(get_cache)):
    return {"ok": True, "cached_orders": len(cache)}

def _error_response(_request: Request, exc: OrderCacheError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_response().model_dump())

def _request_validation_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    err = OrderValidationError("Request body is not a valid order document",
                               {"errors": jsonable_encoder(exc.errors())})
    return _error_response(request, err)

def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """Build the API around one store, one cache and one pipeline.

    The schema is ensured and the cache filled from the store when the app
    starts; a SchemaError or store failure there aborts startup.
    """
    s = settings or default_settings
    configure_logging(s.LOG_LEVEL, s.LOG_JSON)

    engine = engine if engine is not None else make_engine(s.DATABASE_URL, s.DB_SCHEMA)
    store = OrderStore(engine)
    cache = OrderCache()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        created = ensure_schema(engine)
        cache.populate(store.load_all())
        logger.info("order cache ready", created_tables=[t for t, c in created.items() if c],
                    cached_orders=len(cache))
        yield
        engine.dispose()

    app = FastAPI(title="Order Cache API", version="1.0.0", lifespan=lifespan)
    app.state.engine = engine
    app.state.store = store
    app.state.cache = cache
    app.state.pipeline = IngestionPipeline(store, cache)

    app.add_exception_handler(OrderCacheError, _error_response)
    app.add_exception_handler(RequestValidationError, _request_validation_response)
    app.include_router(router)

    return app
