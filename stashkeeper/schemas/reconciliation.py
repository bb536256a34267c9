"""
Schemas Pydantic para conferência e correção de estoque
"""
from pydantic import BaseModel
from decimal import Decimal
from uuid import UUID
from typing import List, Literal, Optional

FixMode = Literal["auto", "overwrite", "zero"]


class StockCheck(BaseModel):
    product_id: UUID
    name: Optional[str] = None
    code: Optional[str] = None
    unit: Optional[str] = None
    current_stock: Optional[Decimal] = None
    calculated_stock: Optional[Decimal] = None
    difference: Optional[Decimal] = None
    movements: int = 0
    is_consistent: bool = False
    is_negative: bool = False
    error: Optional[str] = None


class StockReport(BaseModel):
    consistent: int = 0
    inconsistent: int = 0
    negative: int = 0
    checks: List[StockCheck] = []

    @property
    def checks_to_fix(self) -> List[StockCheck]:
        """Divergentes do histórico ou com histórico negativo"""
        return [c for c in self.checks if not c.error and (not c.is_consistent or c.is_negative)]


class FixRequest(BaseModel):
    mode: FixMode = "auto"


class FixResult(BaseModel):
    product_id: UUID
    success: bool
    action: Literal["none", "overwrite", "adjustment", "zero", "failed"]
    previous_stock: Optional[Decimal] = None
    new_stock: Optional[Decimal] = None
    adjustment_quantity: Optional[Decimal] = None
    adjustment_movement_id: Optional[UUID] = None
    error: Optional[str] = None


class FixReport(BaseModel):
    corrected: int = 0
    adjusted: int = 0
    failed: int = 0
    results: List[FixResult] = []


class CompensationCheck(BaseModel):
    compensation_id: UUID
    original_id: Optional[UUID] = None
    product_id: Optional[UUID] = None
    status: str
    is_intact: bool
