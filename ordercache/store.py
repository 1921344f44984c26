from __future__ import annotations
from typing import Any, Dict, List, Type

from pydantic import BaseModel, ValidationError
from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import (
    DataError,
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import selectinload

from ordercache.db import make_session_factory
from ordercache.errors import (
    StoreConflict,
    StoreError,
    StoreIntegrityError,
    StoreUnavailable,
)
from ordercache.log import get_logger
from ordercache.models import DeliveryRow, ItemRow, OrderRow, PaymentRow
from ordercache.schemas import Delivery, Item, Order, Payment

logger = get_logger(__name__)

_NESTED = {"delivery", "payment", "items"}

def _translate(e: SQLAlchemyError, action: str) -> StoreError:
    details = {"action": action, "error": str(e)}
    if isinstance(e, (OperationalError, InterfaceError)):
        return StoreUnavailable(details=details)
    if isinstance(e, DBAPIError) and e.connection_invalidated:
        return StoreUnavailable(details=details)
    return StoreError(f"Order store failed during {action}", details)

def _columns(row: Any, model: Type[BaseModel], skip=()) -> Dict[str, Any]:
    return {f: getattr(row, f) for f in model.model_fields if f not in skip}

def _to_row(order: Order) -> OrderRow:
    return OrderRow(
        **order.model_dump(exclude=_NESTED),
        delivery=DeliveryRow(**order.delivery.model_dump()),
        payment=PaymentRow(**order.payment.model_dump()),
        items=[ItemRow(**item.model_dump()) for item in order.items],
    )

def _to_order(row: OrderRow) -> Order:
    if row.delivery is None or row.payment is None:
        raise StoreIntegrityError(
            f"Order {row.order_uid} is missing its delivery or payment row",
            {"order_uid": row.order_uid, "delivery_id": row.delivery_id, "payment_id": row.payment_id},
        )
    try:
        return Order(
            **_columns(row, Order, skip=_NESTED),
            delivery=Delivery(**_columns(row.delivery, Delivery)),
            payment=Payment(**_columns(row.payment, Payment)),
            items=[Item(**_columns(i, Item)) for i in row.items],
        )
    except ValidationError as e:
        raise StoreIntegrityError(
            f"Stored order {row.order_uid} does not form a valid document",
            {"order_uid": row.order_uid, "errors": e.errors(include_url=False, include_context=False, include_input=False)},
        ) from e

class OrderStore:
    def __init__(self, engine: Engine):
        self.engine = engine
        self._sessions = make_session_factory(engine)

    def exists(self, order_uid: str) -> bool:
        stmt = select(OrderRow.order_uid).where(OrderRow.order_uid == order_uid).limit(1)
        try:
            with self._sessions() as session:
                return session.execute(stmt).first() is not None
        except SQLAlchemyError as e:
            raise _translate(e, "exists") from e

    def insert(self, order: Order) -> None:
        """Write the order aggregate in one transaction.

        The unit of work inserts delivery and payment first, wires their
        generated ids into the orders row, then inserts the items in document
        order. Any failure rolls the whole aggregate back.
        """
        row = _to_row(order)
        try:
            with self._sessions.begin() as session:
                session.add(row)
        except IntegrityError as e:
            # Primary key is the final arbiter for concurrent submissions of
            # the same order_uid; anything else is a broken reference/constraint.
            if self.exists(order.order_uid):
                raise StoreConflict(order.order_uid) from e
            logger.error("order insert rejected", order_uid=order.order_uid, error=str(e.orig))
            raise StoreIntegrityError(
                f"Order {order.order_uid} violates a table constraint",
                {"order_uid": order.order_uid, "error": str(e.orig)},
            ) from e
        except DataError as e:
            logger.error("order insert rejected", order_uid=order.order_uid, error=str(e.orig))
            raise StoreIntegrityError(
                f"Order {order.order_uid} does not fit the table columns",
                {"order_uid": order.order_uid, "error": str(e.orig)},
            ) from e
        except SQLAlchemyError as e:
            raise _translate(e, "insert") from e
        logger.debug("order inserted", order_uid=order.order_uid, items=len(order.items))

    def load_all(self) -> List[Order]:
        # delivery ids are handed out in insert order, so this replays commit order
        stmt = (select(OrderRow)
                .options(selectinload(OrderRow.items))
                .order_by(OrderRow.delivery_id, OrderRow.order_uid))
        try:
            with self._sessions() as session:
                rows = session.execute(stmt).unique().scalars().all()
                orders = [_to_order(r) for r in rows]
        except SQLAlchemyError as e:
            raise _translate(e, "load_all") from e
        logger.info("orders loaded", count=len(orders))
        return orders

    def count(self) -> int:
        try:
            with self._sessions() as session:
                return int(session.execute(select(func.count()).select_from(OrderRow)).scalar_one())
        except SQLAlchemyError as e:
            raise _translate(e, "count") from e
