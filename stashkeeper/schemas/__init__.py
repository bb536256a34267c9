from stashkeeper.schemas.product import ProductCreate, ProductRead, ProductSearchResult
from stashkeeper.schemas.movement import (
    MovementCreate,
    MovementUpdate,
    MovementRead,
    DeletionResult,
    StockValidationRequest,
    StockValidationResponse,
)
from stashkeeper.schemas.reconciliation import (
    StockCheck,
    StockReport,
    FixRequest,
    FixResult,
    FixReport,
    CompensationCheck,
)

__all__ = [
    "ProductCreate",
    "ProductRead",
    "ProductSearchResult",
    "MovementCreate",
    "MovementUpdate",
    "MovementRead",
    "DeletionResult",
    "StockValidationRequest",
    "StockValidationResponse",
    "StockCheck",
    "StockReport",
    "FixRequest",
    "FixResult",
    "FixReport",
    "CompensationCheck",
]
