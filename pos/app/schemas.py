"""Request bodies accepted by the billing API."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .billing.cart import Cart, LineItem
from .tax.gst_engine import GSTLogic
from .tax.gst_split import GSTTransactionType


class LineItemIn(BaseModel):
    unit_key: str
    description: str = ""
    design_no: str = ""
    mrp: Decimal
    discount: Decimal = Decimal("0")
    discount_percent: Decimal = Decimal("0")
    tax_logic: GSTLogic = GSTLogic.AUTO_5_18
    order_number: Optional[str] = None
    delivered: bool = True

    def to_line_item(self) -> LineItem:
        return LineItem(
            unit_key=self.unit_key,
            description=self.description,
            design_no=self.design_no,
            mrp=self.mrp,
            discount=self.discount,
            discount_percent=self.discount_percent,
            tax_logic=self.tax_logic,
            order_number=self.order_number,
            delivered=self.delivered,
        )


class CartIn(BaseModel):
    items: List[LineItemIn] = Field(default_factory=list)

    def to_cart(self) -> Cart:
        return Cart(items=tuple(item.to_line_item() for item in self.items))


class CheckoutIn(CartIn):
    customer_mobile: str
    customer_name: str = ""
    payment_mode: str = "Cash"
    amount_paid: Decimal = Decimal("0")
    gst_type: Optional[GSTTransactionType] = None
    customer_state: Optional[str] = None
    expected_delivery_date: Optional[date] = None
    created_by: Optional[str] = None
    salesman_id: Optional[str] = None


class DeliveryIn(BaseModel):
    delivered_on: Optional[date] = None
