"""
Dependências do FastAPI
"""
import logging
from typing import Iterator
from stashkeeper.config import settings
from stashkeeper.database import SessionLocal
from stashkeeper.services.store import SqlAlchemyStockStore, StockStore

logger = logging.getLogger(__name__)


def get_store() -> Iterator[StockStore]:
    """
    Store conforme settings.STORE_BACKEND:
    - "sql": SQLAlchemy (transacional)
    - "supabase": cliente REST do Supabase (sem transação)
    """
    if settings.STORE_BACKEND == "supabase":
        from stashkeeper.services.supabase_store import SupabaseStockStore

        yield SupabaseStockStore.from_settings()
        return

    db = SessionLocal()
    try:
        yield SqlAlchemyStockStore(db)
    finally:
        db.close()
