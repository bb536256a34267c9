from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from typing import Literal, Optional

MovementType = Literal["entrada", "saida"]


class MovementBase(BaseModel):
    product_id: UUID
    type: MovementType
    quantity: Decimal
    unit: Optional[str] = None
    notes: Optional[str] = None


class MovementCreate(MovementBase):
    quantity: Decimal = Field(..., gt=0)


class MovementUpdate(BaseModel):
    type: Optional[MovementType] = None
    quantity: Optional[Decimal] = Field(None, gt=0)
    unit: Optional[str] = None
    notes: Optional[str] = None


class MovementRead(MovementBase):
    id: UUID
    compensates_movement_id: Optional[UUID] = None
    deleted: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DeletionResult(BaseModel):
    movement_id: UUID
    state: Literal["DELETED", "COMPENSATED_DELETED", "ALREADY_DELETED"]
    product_id: UUID
    previous_quantity: Optional[Decimal] = None
    new_quantity: Optional[Decimal] = None
    compensation: Optional[MovementRead] = None


class StockValidationRequest(BaseModel):
    product_id: UUID
    quantity: Decimal = Field(..., gt=0)
    unit: Optional[str] = None


class StockValidationResponse(BaseModel):
    valid: bool
    message: Optional[str] = None
