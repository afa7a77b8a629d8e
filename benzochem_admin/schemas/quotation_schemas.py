"""
Draft Quotation Schemas
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuotationItemCreate(BaseModel):
    product_id: str = Field(..., min_length=1)
    variant_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=20)
    specifications: Optional[str] = None
    notes: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)


class QuotationItem(QuotationItemCreate):
    id: str


class DraftNotesUpdate(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class DraftQuotation(BaseModel):
    id: str
    user_id: str
    items: List[QuotationItem]
    notes: Optional[str] = None
    status: str
    expires_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
