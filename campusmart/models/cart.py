from pydantic import BaseModel, Field
from typing import List, Literal
from datetime import datetime

from campusmart.models.product import Product

CartLineStatus = Literal["Unpaid", "Paid", "Confirmed", "Successful"]

class CartLine(BaseModel):
    """Stored cart entry, unique per (user_id, product_id)"""
    user_id: str
    product_id: str
    quantity: int = Field(..., ge=1)
    status: CartLineStatus = "Unpaid"
    date_added: datetime = Field(default_factory=datetime.utcnow)

class CartItem(BaseModel):
    product: Product
    quantity: int
    status: CartLineStatus = "Unpaid"

class CartSummary(BaseModel):
    items: List[CartItem] = []
    cart_count: int = 0
    cart_total: float = 0.0

    @classmethod
    def from_items(cls, items: List[CartItem]) -> "CartSummary":
        return cls(
            items=items,
            cart_count=sum(item.quantity for item in items),
            cart_total=sum(item.product.price * item.quantity for item in items),
        )

class CartAdd(BaseModel):
    product_id: str
    quantity: int = 1

class CartQuantityUpdate(BaseModel):
    quantity: int  # <= 0 removes the line
