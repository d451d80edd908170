from pydantic import BaseModel, Field
from typing import List
import uuid
from datetime import datetime

from campusmart.models.user import UserSummary

class Category(BaseModel):
    id: str
    name: str

class Product(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    category: Category
    seller: UserSummary
    image_urls: List[str] = []
    date_added: datetime = Field(default_factory=datetime.utcnow)

    @property
    def cover_image(self) -> str:
        return self.image_urls[0] if self.image_urls else ""
