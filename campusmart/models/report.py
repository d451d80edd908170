from pydantic import BaseModel, Field
import uuid
from datetime import datetime

class Reporter(BaseModel):
    id: str
    name: str

class Report(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    product_id: str
    product_name: str
    reported_by: Reporter
    reason: str
    date: datetime = Field(default_factory=datetime.utcnow)

class ReportCreate(BaseModel):
    reason: str = Field("", max_length=2000)
