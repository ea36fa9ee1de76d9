import uuid
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class ProductRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Display name of the product.")
    category: List[str] = Field(..., min_length=1, description="At least one category.")
    description: str = ""
    image_file: str = Field(..., min_length=1)
    price: Decimal = Field(..., gt=0, description="Selling price of the product.")


class ProductUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[List[str]] = None
    description: Optional[str] = None
    image_file: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0)


class ProductResponse(BaseModel):
    id: uuid.UUID
    name: str
    category: List[str]
    description: str
    image_file: str
    price: Decimal
