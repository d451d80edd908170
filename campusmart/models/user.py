from pydantic import BaseModel, Field
from typing import Optional
import uuid
from datetime import datetime

class User(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    email: str
    avatar_url: Optional[str] = ""
    is_verified: bool = False
    qr_code_url: Optional[str] = None  # Seller's e-wallet QR code
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def display_name(self) -> str:
        return self.name or self.email or "Anonymous Buyer"

class UserSummary(BaseModel):
    """Denormalized seller identity embedded in product listings"""
    id: str
    name: str
    avatar_url: Optional[str] = ""
    is_verified: bool = False
    qr_code_url: Optional[str] = None
