from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional


class ProductBase(BaseModel):
    code: str
    name: str
    unit: str = "unidade"
    min_quantity: Optional[Decimal] = None


class ProductCreate(ProductBase):
    initial_quantity: Decimal = Field(Decimal("0"), ge=0)


class ProductRead(ProductBase):
    id: UUID
    quantity: Decimal = Decimal("0")
    initial_quantity: Decimal = Decimal("0")
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductSearchResult(BaseModel):
    product: ProductRead
    score: float


class ProductUnits(BaseModel):
    """Unidade do produto e as unidades aceitas em movimentações"""
    product_id: UUID
    unit: str
    full_name: str
    family: Optional[str] = None
    accepted_units: List[str]
    decimal: bool
    quantity_display: str
