# marketplace/models.py
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Literal

from pydantic import BaseModel, Field, TypeAdapter

CENTS = Decimal("0.01")

Category = Literal["electronics", "clothing", "food", "shoes", "accessories", "other"]


class Product(BaseModel):
    id: str
    name: str
    price: Decimal = Field(..., ge=0)
    emoji: str = "📱"
    category: Category = "electronics"
    description: str = ""


class CartItem(Product):
    quantity: int = Field(1, ge=1)

    @property
    def line_total(self) -> Decimal:
        return (self.price * self.quantity).quantize(CENTS, rounding=ROUND_HALF_UP)


class CartTotals(BaseModel):
    total_price: Decimal
    item_count: int


class Confirmation(BaseModel):
    message: str
    payment_method: str
    total_price: Decimal


class SaveResult(BaseModel):
    ok: bool
    keys: List[str] = []
    error: str = ""


ProductList = TypeAdapter(List[Product])
CartItemList = TypeAdapter(List[CartItem])
