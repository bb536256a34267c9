"""
Router para conferência e correção de estoque
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from uuid import UUID
from stashkeeper.dependencies import get_store
from stashkeeper.schemas.reconciliation import (
    CompensationCheck,
    FixReport,
    FixRequest,
    FixResult,
    StockCheck,
    StockReport,
)
from stashkeeper.services.reconciliation import (
    check_all_stocks,
    fix_all_stocks,
    fix_product_stock,
    recalculate_product_stock,
    verify_compensation_integrity,
)
from stashkeeper.services.store import StockStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/stock/check", response_model=StockReport)
async def check_stocks(store: StockStore = Depends(get_store)):
    """Recalcula o estoque de todos os produtos a partir das movimentações"""
    return check_all_stocks(store)


@router.post("/stock/check/async", status_code=202)
async def check_stocks_async(data: Optional[FixRequest] = None, fix: bool = False):
    """
    Enfileira a conferência (e opcionalmente a correção) no Celery.
    """
    try:
        from stashkeeper.tasks.stock_tasks import reconcile_stock_task

        mode = data.mode if data else "auto"
        task = reconcile_stock_task.delay(fix=fix, mode=mode)
        logger.info(f"Stock reconciliation queued: task_id={task.id}, fix={fix}")
        return {"task_id": task.id, "status": "queued"}
    except Exception as e:
        logger.error(f"Error queueing stock reconciliation: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Fila de processamento indisponível"
        )


@router.get("/stock/check/{product_id}", response_model=StockCheck)
async def check_product(product_id: UUID, store: StockStore = Depends(get_store)):
    """Recalcula o estoque de um produto"""
    return recalculate_product_stock(store, product_id)


@router.post("/stock/fix", response_model=FixReport)
async def fix_stocks(data: FixRequest, store: StockStore = Depends(get_store)):
    """Corrige os produtos inconsistentes ou com histórico negativo"""
    report = fix_all_stocks(store, mode=data.mode)
    logger.info(
        f"Stock fix ({data.mode}): {report.corrected} corrected, "
        f"{report.adjusted} adjusted, {report.failed} failed"
    )
    return report


@router.post("/stock/fix/{product_id}", response_model=FixResult)
async def fix_product(product_id: UUID, data: FixRequest, store: StockStore = Depends(get_store)):
    """Corrige o estoque de um produto"""
    return fix_product_stock(store, product_id, mode=data.mode)


@router.get("/stock/compensations/integrity", response_model=List[CompensationCheck])
async def compensations_integrity(store: StockStore = Depends(get_store)):
    """Confere se cada compensação automática aponta para uma movimentação excluída"""
    return verify_compensation_integrity(store)
