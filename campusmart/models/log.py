from pydantic import BaseModel, Field
from typing import Optional
import uuid
from datetime import datetime

class ActivityLog(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    username: str
    action: str  # 'purchase_initiated', 'transaction_confirmed', 'product_reported', etc.
    details: str  # Human-readable description of the action
    target_id: Optional[str] = None  # ID of the target entity (purchase_id, product_id, ...)
    target_type: Optional[str] = None  # 'purchase', 'product', 'notification', ...
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
