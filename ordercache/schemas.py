from typing import Annotated, List
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictInt, StrictStr

def _encodable(s: str) -> str:
    # Lone surrogates survive JSON decoding but no database driver can send them.
    try:
        s.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError("string is not valid UTF-8 text") from None
    return s

def _text(max_length: int):
    return Annotated[StrictStr, Field(max_length=max_length), AfterValidator(_encodable)]

# Widths of the relational columns the documents land in.
Str10 = _text(10)
Str20 = _text(20)
Str50 = _text(50)
Str100 = _text(100)
Str255 = _text(255)

Int32 = Annotated[StrictInt, Field(ge=-(2 ** 31), le=2 ** 31 - 1)]
Int64 = Annotated[StrictInt, Field(ge=-(2 ** 63), le=2 ** 63 - 1)]

class _Document(BaseModel):
    # Unknown keys are dropped, not stored and not echoed back.
    model_config = ConfigDict(extra="ignore", frozen=True)

class Delivery(_Document):
    name: Str255
    phone: Str50
    zip: Str20
    city: Str100
    address: Str255
    region: Str100
    email: Str100

class Payment(_Document):
    transaction: Str255
    request_id: Str255
    currency: Str10
    provider: Str100
    amount: Int32
    payment_dt: Int64
    bank: Str100
    delivery_cost: Int32
    goods_total: Int32
    custom_fee: Int32

class Item(_Document):
    chrt_id: Int32
    track_number: Str255
    price: Int32
    rid: Str255
    name: Str255
    sale: Int32
    size: Str50
    total_price: Int32
    nm_id: Int32
    brand: Str100
    status: Int32

class Order(_Document):
    order_uid: Str255
    track_number: Str255
    entry: Str255
    delivery: Delivery
    payment: Payment
    items: List[Item]
    locale: Str10
    internal_signature: Str255
    customer_id: Str255
    delivery_service: Str100
    shardkey: Str50
    sm_id: Int32
    date_created: Str50
    oof_shard: Str50
