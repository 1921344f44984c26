from sqlalchemy import Column, String, Integer, BigInteger, ForeignKey
from sqlalchemy.orm import relationship
from ordercache.db import Base

class DeliveryRow(Base):
    __tablename__ = "delivery"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    zip = Column(String(20), nullable=False)
    city = Column(String(100), nullable=False)
    address = Column(String(255), nullable=False)
    region = Column(String(100), nullable=False)
    email = Column(String(100), nullable=False)

class PaymentRow(Base):
    __tablename__ = "payment"
    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction = Column(String(255), nullable=False)
    request_id = Column(String(255), nullable=False)
    currency = Column(String(10), nullable=False)
    provider = Column(String(100), nullable=False)
    amount = Column(Integer, nullable=False)
    payment_dt = Column(BigInteger, nullable=False)
    bank = Column(String(100), nullable=False)
    delivery_cost = Column(Integer, nullable=False)
    goods_total = Column(Integer, nullable=False)
    custom_fee = Column(Integer, nullable=False)

class OrderRow(Base):
    __tablename__ = "orders"
    order_uid = Column(String(255), primary_key=True)
    track_number = Column(String(255), nullable=False)
    entry = Column(String(255), nullable=False)
    delivery_id = Column(Integer, ForeignKey("delivery.id", ondelete="CASCADE"), nullable=False, unique=True)
    payment_id = Column(Integer, ForeignKey("payment.id", ondelete="CASCADE"), nullable=False, unique=True)
    locale = Column(String(10), nullable=False)
    internal_signature = Column(String(255), nullable=False)
    customer_id = Column(String(255), nullable=False)
    delivery_service = Column(String(100), nullable=False)
    shardkey = Column(String(50), nullable=False)
    sm_id = Column(Integer, nullable=False)
    date_created = Column(String(50), nullable=False)
    oof_shard = Column(String(50), nullable=False)

    delivery = relationship(DeliveryRow, lazy="joined")
    payment = relationship(PaymentRow, lazy="joined")
    items = relationship("ItemRow", order_by="ItemRow.id", cascade="all, delete-orphan", passive_deletes=True)

class ItemRow(Base):
    __tablename__ = "item"
    id = Column(Integer, primary_key=True, autoincrement=True)
    chrt_id = Column(Integer, nullable=False)
    track_number = Column(String(255), nullable=False)
    price = Column(Integer, nullable=False)
    rid = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    sale = Column(Integer, nullable=False)
    size = Column(String(50), nullable=False)
    total_price = Column(Integer, nullable=False)
    nm_id = Column(Integer, nullable=False)
    brand = Column(String(100), nullable=False)
    status = Column(Integer, nullable=False)
    order_uid = Column(String(255), ForeignKey("orders.order_uid", ondelete="CASCADE"), nullable=False)

# Creation order; each table only references tables before it.
TABLES = {
    "delivery": DeliveryRow.__table__,
    "payment": PaymentRow.__table__,
    "orders": OrderRow.__table__,
    "item": ItemRow.__table__,
}
