from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from rideway.db.models.product import ProductType


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=2)
    type: ProductType
    base_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None
    features: Dict[str, Any] = Field(default_factory=dict)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    type: Optional[ProductType] = None
    base_price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None
    features: Optional[Dict[str, Any]] = None


class ProductRead(BaseModel):
    id: str
    name: str
    type: ProductType
    base_price: Decimal
    description: Optional[str] = None
    features: Dict[str, Any]
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
