from __future__ import annotations
import threading
from typing import Dict, Iterable, List, Optional
from ordercache.schemas import Order

class OrderCache:
    """In-process read cache of committed orders keyed by order_uid.

    Entries keep insertion order: startup load order first, then ingestion
    order. Every read and write takes the same lock; callers must never hold
    it across store I/O, so nothing here touches the database.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._orders: Dict[str, Order] = {}

    def populate(self, orders: Iterable[Order]) -> None:
        fresh = {o.order_uid: o for o in orders}
        with self._lock:
            self._orders = fresh

    def put(self, order: Order) -> None:
        # Overwriting an existing key keeps its original position.
        with self._lock:
            self._orders[order.order_uid] = order

    def get(self, order_uid: str) -> Optional[Order]:
        with self._lock:
            return self._orders.get(order_uid)

    def snapshot(self) -> List[Order]:
        with self._lock:
            return list(self._orders.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)

    def __contains__(self, order_uid: object) -> bool:
        with self._lock:
            return order_uid in self._orders
