import pytest
from sqlalchemy import text
from ordercache.db import make_engine
from ordercache.errors import StoreConflict, StoreIntegrityError, StoreUnavailable
from ordercache.schemas import Order
from factories import order_doc

def _counts(engine):
    with engine.connect() as conn:
        return {t: conn.execute(text(f"SELECT COUNT(*) FROM {t}")).scalar_one()
                for t in ("delivery", "payment", "orders", "item")}

def test_insert_then_exists(store):
    order = Order.model_validate(order_doc("uid-1"))
    assert store.exists("uid-1") is False

    store.insert(order)

    assert store.exists("uid-1") is True
    assert store.count() == 1

def test_insert_normalizes_into_four_tables(store, engine):
    store.insert(Order.model_validate(order_doc("uid-1", n_items=3)))
    store.insert(Order.model_validate(order_doc("uid-2", n_items=0)))

    assert _counts(engine) == {"delivery": 2, "payment": 2, "orders": 2, "item": 3}
    with engine.connect() as conn:
        rows = conn.execute(text("SELECT delivery_id, payment_id FROM orders")).all()
    # every order has its own delivery and payment row
    assert len({r[0] for r in rows}) == 2
    assert len({r[1] for r in rows}) == 2

def test_load_all_round_trips_documents(store):
    docs = [order_doc("uid-a", 2), order_doc("uid-b", 0), order_doc("uid-c", 5)]
    for d in docs:
        store.insert(Order.model_validate(d))

    loaded = store.load_all()

    assert [o.model_dump() for o in loaded] == docs

def test_load_all_keeps_item_order(store):
    doc = order_doc("uid-1", 4)
    doc["items"].reverse()
    store.insert(Order.model_validate(doc))

    (loaded,) = store.load_all()
    assert [i.rid for i in loaded.items] == [i["rid"] for i in doc["items"]]

def test_second_insert_is_a_conflict(store, engine):
    order = Order.model_validate(order_doc("uid-1"))
    store.insert(order)

    with pytest.raises(StoreConflict) as ei:
        store.insert(order)
    assert ei.value.code == "ORDER_EXISTS"
    # the failed attempt must not leave its delivery/payment rows behind
    assert _counts(engine) == {"delivery": 1, "payment": 1, "orders": 1, "item": 1}

def test_failing_item_rolls_back_whole_order(store, engine):
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TRIGGER reject_poison BEFORE INSERT ON item "
            "WHEN NEW.name = 'poison' BEGIN SELECT RAISE(ABORT, 'poison item'); END"
        ))
    doc = order_doc("uid-bad", 3)
    doc["items"][2]["name"] = "poison"

    with pytest.raises(StoreIntegrityError):
        store.insert(Order.model_validate(doc))

    assert store.exists("uid-bad") is False
    assert _counts(engine) == {"delivery": 0, "payment": 0, "orders": 0, "item": 0}

def test_deleting_an_order_cascades_to_items(store, engine):
    store.insert(Order.model_validate(order_doc("uid-1", 2)))
    with engine.begin() as conn:
        conn.execute(text("DELETE FROM orders WHERE order_uid = 'uid-1'"))
    assert _counts(engine)["item"] == 0

def test_unreachable_database_is_unavailable(tmp_path):
    from ordercache.store import OrderStore
    store = OrderStore(make_engine(f"sqlite:///{tmp_path / 'nope' / 'x.sqlite3'}"))
    with pytest.raises(StoreUnavailable):
        store.exists("uid-1")
    with pytest.raises(StoreUnavailable):
        store.load_all()

_ORDER_COLS = ("order_uid, track_number, entry, delivery_id, payment_id, locale, internal_signature, "
               "customer_id, delivery_service, shardkey, sm_id, date_created, oof_shard")

@pytest.mark.parametrize("delivery_from, payment_from", [("uid-1", "uid-2"), ("uid-2", "uid-1")])
def test_delivery_and_payment_rows_belong_to_one_order(store, engine, delivery_from, payment_from):
    from sqlalchemy.exc import IntegrityError
    store.insert(Order.model_validate(order_doc("uid-1")))
    store.insert(Order.model_validate(order_doc("uid-2")))

    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            conn.execute(text(
                f"INSERT INTO orders ({_ORDER_COLS}) "
                "SELECT 'uid-3', o.track_number, o.entry, d.delivery_id, p.payment_id, o.locale, "
                "o.internal_signature, o.customer_id, o.delivery_service, o.shardkey, o.sm_id, "
                "o.date_created, o.oof_shard "
                "FROM orders o, orders d, orders p "
                "WHERE o.order_uid = 'uid-1' AND d.order_uid = :d AND p.order_uid = :p"
            ), {"d": delivery_from, "p": payment_from})

    assert store.exists("uid-3") is False
    assert _counts(engine)["orders"] == 2
