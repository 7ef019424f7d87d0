from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.session_block import SessionBlockCreate


class CustomerCreate(BaseModel):
    """Customer registration, optionally with the first session package"""
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    initial_block: Optional[SessionBlockCreate] = Field(None, description="First session block to open")


class CustomerResponse(BaseModel):
    id: int
    studio_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
