"""
Tasks do Celery para conferência de estoque em background
"""
import logging
from stashkeeper.celery_app import celery_app
from stashkeeper.database import SessionLocal
from stashkeeper.services.reconciliation import check_all_stocks, fix_all_stocks
from stashkeeper.services.store import SqlAlchemyStockStore

logger = logging.getLogger(__name__)


@celery_app.task(name="reconcile_stock_task", bind=True, max_retries=3)
def reconcile_stock_task(self, fix: bool = False, mode: str = "auto"):
    """
    Confere (e opcionalmente corrige) o estoque de todos os produtos.

    Args:
        fix: Aplica a correção nos produtos inconsistentes
        mode: Modo de correção ("auto" | "overwrite" | "zero")
    """
    db = SessionLocal()
    try:
        store = SqlAlchemyStockStore(db)
        logger.info(f"Reconciling stock: fix={fix}, mode={mode}")

        report = check_all_stocks(store)
        result = {
            "status": "completed",
            "consistent": report.consistent,
            "inconsistent": report.inconsistent,
            "negative": report.negative,
        }

        if fix and report.checks_to_fix:
            fix_report = fix_all_stocks(store, mode=mode)
            result.update({
                "corrected": fix_report.corrected,
                "adjusted": fix_report.adjusted,
                "failed": fix_report.failed,
            })

        logger.info(f"Stock reconciliation finished: {result}")
        return result

    except Exception as e:
        logger.error(f"Error reconciling stock: {e}", exc_info=True)
        # Retry com backoff exponencial
        raise self.retry(exc=e, countdown=2 ** self.request.retries)
    finally:
        db.close()
