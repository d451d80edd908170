from pydantic import BaseModel, Field
from typing import Literal
import uuid
from datetime import datetime

PurchaseStatus = Literal["Pending", "Successful", "Delivered", "Cancelled"]
PaymentMethod = Literal["ewallet", "banking", "cod"]

PENDING = "Pending"
SUCCESSFUL = "Successful"

class Purchase(BaseModel):
    """Buyer-side purchase record.

    Product and seller fields are a snapshot taken when the purchase was
    initiated, so later edits or deletion of the listing leave history intact.
    Delivered and Cancelled are reserved; no operation moves a purchase there.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    buyer_id: str
    product_id: str
    product_name: str
    product_image: str = ""
    price: float
    seller_id: str
    seller_name: str
    buyer_name: str
    payment_method: PaymentMethod
    purchase_date: datetime = Field(default_factory=datetime.utcnow)
    status: PurchaseStatus = PENDING

class PurchaseCreate(BaseModel):
    product_id: str
    payment_method: PaymentMethod = "ewallet"
