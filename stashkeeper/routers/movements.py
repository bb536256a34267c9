"""
Router para endpoints de movimentações de estoque
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from uuid import UUID
from stashkeeper.dependencies import get_store
from stashkeeper.schemas.movement import (
    DeletionResult,
    MovementCreate,
    MovementRead,
    MovementUpdate,
    StockValidationRequest,
    StockValidationResponse,
)
from stashkeeper.services.movement_service import MovementService
from stashkeeper.services.stock_validation import validate_stock
from stashkeeper.services.store import StockStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/movements", response_model=List[MovementRead])
async def list_movements(
    product_id: Optional[UUID] = Query(None),
    include_deleted: bool = Query(False),
    store: StockStore = Depends(get_store)
):
    """
    Lista movimentações, da mais recente para a mais antiga.

    Query params:
    - product_id: filtra por produto
    - include_deleted: inclui movimentações excluídas (padrão: False)
    """
    movements = store.list_movements(
        product_id=product_id,
        deleted=None if include_deleted else False
    )
    return list(reversed(movements))


@router.post("/movements", response_model=MovementRead, status_code=201)
async def create_movement(data: MovementCreate, store: StockStore = Depends(get_store)):
    """Registra uma entrada ou saída e atualiza o estoque do produto"""
    service = MovementService(store)
    return service.register_movement(
        data.product_id,
        data.type,
        data.quantity,
        unit=data.unit,
        notes=data.notes
    )


@router.patch("/movements/{movement_id}", response_model=MovementRead)
async def update_movement(
    movement_id: UUID,
    data: MovementUpdate,
    store: StockStore = Depends(get_store)
):
    """Edita uma movimentação, desfazendo o efeito antigo e aplicando o novo"""
    service = MovementService(store)
    return service.update_movement(
        movement_id,
        movement_type=data.type,
        quantity=data.quantity,
        unit=data.unit,
        notes=data.notes
    )


@router.delete("/movements/{movement_id}", response_model=DeletionResult)
async def delete_movement(movement_id: UUID, store: StockStore = Depends(get_store)):
    """
    Exclui (logicamente) uma movimentação.

    Excluir de novo a mesma movimentação é um no-op (state=ALREADY_DELETED).
    Quando a exclusão de uma entrada deixaria o estoque negativo, é registrada
    uma entrada de compensação e o estoque fica em zero (state=COMPENSATED_DELETED).
    """
    service = MovementService(store)
    return service.delete_movement(movement_id)


@router.post("/stock/validate", response_model=StockValidationResponse)
async def validate(data: StockValidationRequest, store: StockStore = Depends(get_store)):
    """Verifica se uma saída cabe no estoque do produto, sem gravar nada"""
    product = store.read_product(data.product_id)
    result = validate_stock(product.quantity, data.quantity, data.unit, product.unit)
    return StockValidationResponse(valid=result.valid, message=result.message)
