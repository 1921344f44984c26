from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ordercache.cache import OrderCache
from ordercache.errors import (
    OrderValidationError,
    StoreConflict,
    StoreError,
    StoreIntegrityError,
    StoreUnavailable,
)
from ordercache.log import get_logger
from ordercache.schemas import Order
from ordercache.store import OrderStore

logger = get_logger(__name__)

class IngestState(str, enum.Enum):
    RECEIVED = "received"
    CHECKING = "checking"
    PERSISTING = "persisting"
    DUPLICATE = "duplicate"
    COMMITTED = "committed"
    FAILED = "failed"

@dataclass(frozen=True)
class IngestResult:
    order_uid: str
    state: IngestState
    cause: Optional[str] = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.state is IngestState.COMMITTED

    @property
    def duplicate(self) -> bool:
        return self.state is IngestState.DUPLICATE

def _cause(e: StoreError) -> str:
    if isinstance(e, StoreUnavailable):
        return "store_unavailable"
    if isinstance(e, StoreIntegrityError):
        return "store_integrity"
    return "store_error"

def validate_document(document: Any) -> Order:
    """Turn a raw JSON-like document into an Order or raise OrderValidationError."""
    if not isinstance(document, Mapping):
        raise OrderValidationError("Order document must be a JSON object",
                                   {"type": type(document).__name__})
    try:
        return Order.model_validate(dict(document))
    except ValidationError as e:
        raise OrderValidationError(
            f"Order document has {e.error_count()} invalid field(s)",
            {"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        ) from e

class IngestionPipeline:
    """RECEIVED -> CHECKING -> DUPLICATE | PERSISTING -> COMMITTED | FAILED.

    The cache is only written after the store has committed, so a cached
    order is always a durable order.
    """

    def __init__(self, store: OrderStore, cache: OrderCache):
        self.store = store
        self.cache = cache

    def submit_document(self, document: Any) -> IngestResult:
        order = validate_document(document)
        return self.submit(order)

    def submit(self, order: Order) -> IngestResult:
        uid = order.order_uid
        log = logger.bind(order_uid=uid)

        # CHECKING
        try:
            found = self.store.exists(uid)
        except StoreError as e:
            log.error("existence check failed", error=e.message)
            return IngestResult(uid, IngestState.FAILED, "store_unavailable", e)

        if found:
            log.info("duplicate order ignored")
            return IngestResult(uid, IngestState.DUPLICATE)

        # PERSISTING
        try:
            self.store.insert(order)
        except StoreConflict:
            # Another submission committed the same order_uid after our check.
            log.info("duplicate order rejected by store")
            return IngestResult(uid, IngestState.DUPLICATE)
        except StoreError as e:
            cause = _cause(e)
            log.error("order persist failed", cause=cause, error=e.message)
            return IngestResult(uid, IngestState.FAILED, cause, e)

        # COMMITTED
        self.cache.put(order)
        log.info("order stored", items=len(order.items))
        return IngestResult(uid, IngestState.COMMITTED)
