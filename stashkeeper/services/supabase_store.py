"""
StockStore sobre o cliente Python do Supabase (PostgREST).

Cada chamada é uma requisição independente: não existe transação entre
comandos, então `atomic` é False e o MovementService faz a reversão manual
quando a segunda escrita falha.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID
import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client
from stashkeeper.config import settings
from stashkeeper.schemas.movement import MovementRead
from stashkeeper.schemas.product import ProductCreate, ProductRead
from stashkeeper.services.exceptions import NotFound, StoreError
from stashkeeper.services.store import MOVEMENT_UPDATABLE_FIELDS, StockStore

logger = logging.getLogger(__name__)

PRODUCTS_TABLE = "products"
MOVEMENTS_TABLE = "movements"

_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Cliente Supabase compartilhado (lazy loading)"""
    global _supabase_client

    if _supabase_client is None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
            raise StoreError("Supabase não configurado (SUPABASE_URL / SUPABASE_KEY)")
        _supabase_client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)

    return _supabase_client


def _to_json(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, UUID):
        return str(value)
    return value


class SupabaseStockStore(StockStore):
    atomic = False

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def from_settings(cls) -> "SupabaseStockStore":
        return cls(get_supabase_client())

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Supabase error ({action}): {e}")
            raise StoreError(f"Erro ao {action}: {e}") from e

    def _single(self, table: str, row_id: UUID, action: str) -> Dict[str, Any]:
        response = self._execute(
            self.client.table(table).select("*").eq("id", str(row_id)).limit(1),
            action
        )
        if not response.data:
            label = "Produto" if table == PRODUCTS_TABLE else "Movimentação"
            raise NotFound(f"{label} {row_id} não encontrado(a)")
        return response.data[0]

    def read_product(self, product_id: UUID) -> ProductRead:
        row = self._single(PRODUCTS_TABLE, product_id, "buscar produto")
        return ProductRead.model_validate(row)

    def list_products(self) -> List[ProductRead]:
        response = self._execute(
            self.client.table(PRODUCTS_TABLE).select("*").order("name"),
            "buscar produtos"
        )
        return [ProductRead.model_validate(row) for row in response.data or []]

    def create_product(self, data: ProductCreate) -> ProductRead:
        payload = {k: _to_json(v) for k, v in data.model_dump().items()}
        payload["quantity"] = _to_json(data.initial_quantity)
        response = self._execute(
            self.client.table(PRODUCTS_TABLE).insert(payload),
            "criar produto"
        )
        return ProductRead.model_validate(response.data[0])

    def write_product(self, product_id: UUID, quantity: Decimal) -> None:
        response = self._execute(
            self.client.table(PRODUCTS_TABLE)
            .update({"quantity": _to_json(quantity)})
            .eq("id", str(product_id)),
            "atualizar produto"
        )
        if not response.data:
            raise NotFound(f"Produto {product_id} não encontrado")

    def read_movement(self, movement_id: UUID) -> MovementRead:
        row = self._single(MOVEMENTS_TABLE, movement_id, "buscar movimentação")
        return MovementRead.model_validate(row)

    def list_movements(
        self,
        product_id: Optional[UUID] = None,
        deleted: Optional[bool] = None
    ) -> List[MovementRead]:
        query = self.client.table(MOVEMENTS_TABLE).select("*")
        if product_id is not None:
            query = query.eq("product_id", str(product_id))
        if deleted is not None:
            query = query.eq("deleted", deleted)
        response = self._execute(query.order("created_at"), "buscar movimentações")
        return [MovementRead.model_validate(row) for row in response.data or []]

    def insert_movement(self, data: Dict[str, Any]) -> MovementRead:
        payload = {k: _to_json(v) for k, v in data.items() if v is not None}
        response = self._execute(
            self.client.table(MOVEMENTS_TABLE).insert(payload),
            "registrar movimentação"
        )
        return MovementRead.model_validate(response.data[0])

    def update_movement(self, movement_id: UUID, **fields: Any) -> MovementRead:
        unknown = set(fields) - MOVEMENT_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Campos não atualizáveis: {sorted(unknown)}")

        response = self._execute(
            self.client.table(MOVEMENTS_TABLE)
            .update({k: _to_json(v) for k, v in fields.items()})
            .eq("id", str(movement_id)),
            "atualizar movimentação"
        )
        if not response.data:
            raise NotFound(f"Movimentação {movement_id} não encontrada")
        return MovementRead.model_validate(response.data[0])
