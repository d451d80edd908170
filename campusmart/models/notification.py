from pydantic import BaseModel, Field
from typing import Literal, Optional
import uuid
from datetime import datetime

CONFIRM_TRANSACTION = "confirm_transaction"

class NotificationMetadata(BaseModel):
    buyer_id: Optional[str] = None
    product_id: Optional[str] = None
    purchase_id: Optional[str] = None

class Notification(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str  # recipient
    title: str
    message: str
    date: datetime = Field(default_factory=datetime.utcnow)
    read: bool = False
    action_url: Optional[str] = None  # URL to navigate to when clicked
    action_type: Optional[Literal["confirm_transaction"]] = None
    metadata: Optional[NotificationMetadata] = None
    read_at: Optional[datetime] = None

    @property
    def is_pending_confirmation(self) -> bool:
        return self.action_type == CONFIRM_TRANSACTION

class ConfirmationResult(BaseModel):
    purchase_id: str
    confirmed: bool  # False when the action had already been taken
