from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


REQUIRED_ORDER_FIELDS = ("orderId", "customerId", "total")


class Order(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: Any = Field(..., alias="orderId")
    customer_id: Any = Field(..., alias="customerId")
    total: Any
    # unknown types are dispatched to the warning branch, so keep this open
    type: Any = None


class OrderResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    order_id: Any = Field(..., alias="orderId")


@dataclass
class OrderDecode:
    order: Optional[Order] = None
    missing: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.order is not None


def _is_missing(v: Any) -> bool:
    # absent, null, empty string and zero are all rejected; False is not a valid id/total either
    if v is None or v is False:
        return True
    if isinstance(v, str) and v == "":
        return True
    if isinstance(v, (int, float)) and v == 0:
        return True
    return False


def decode_order(payload: Any) -> OrderDecode:
    """Turn a decoded JSON payload into an :class:`Order` or the list of missing fields."""
    if not isinstance(payload, dict):
        return OrderDecode(missing=list(REQUIRED_ORDER_FIELDS))
    missing = [k for k in REQUIRED_ORDER_FIELDS if _is_missing(payload.get(k))]
    if missing:
        return OrderDecode(missing=missing)
    return OrderDecode(order=Order.model_validate(payload))
