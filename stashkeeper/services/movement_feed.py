"""
Sincronização da lista de movimentações visíveis com o feed realtime do Supabase.

Os eventos chegam no formato do canal postgres_changes:
    {"eventType": "INSERT" | "UPDATE" | "DELETE", "new": {...}, "old": {...}}
O cliente Python entrega {"data": {"type", "record", "old_record"}};
normalize_event converte para o formato acima.

O feed é best-effort: eventos podem chegar duplicados ou fora de ordem.
O conjunto de ids já vistos como excluídos fica só em memória e impede que
um evento atrasado traga de volta uma movimentação excluída. A fonte da
verdade continua sendo a leitura do banco (reset).
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Set
from uuid import UUID
from pydantic import ValidationError
from stashkeeper.schemas.movement import MovementRead
from stashkeeper.services.store import StockStore
from stashkeeper.services.supabase_store import MOVEMENTS_TABLE

logger = logging.getLogger(__name__)


class VisibleMovements:
    def __init__(self, rows: Optional[Iterable[Any]] = None):
        self._movements: Dict[UUID, MovementRead] = {}
        self._deleted_ids: Set[UUID] = set()
        if rows is not None:
            self.reset(rows)

    def reset(self, rows: Iterable[Any]) -> None:
        """Substitui o estado por uma leitura do banco"""
        self._movements.clear()
        self._deleted_ids.clear()
        for row in rows:
            movement = self._parse(row)
            if movement is None:
                continue
            if movement.deleted:
                self._deleted_ids.add(movement.id)
            else:
                self._movements[movement.id] = movement

    def _parse(self, row: Any) -> Optional[MovementRead]:
        if isinstance(row, MovementRead):
            return row
        try:
            return MovementRead.model_validate(row)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed movement payload: {e}")
            return None

    def _mark_deleted(self, movement_id: UUID) -> bool:
        self._deleted_ids.add(movement_id)
        return self._movements.pop(movement_id, None) is not None

    def apply(self, event: Dict[str, Any]) -> bool:
        """
        Aplica um evento do feed.

        Returns:
            True se a lista visível mudou
        """
        event_type = (event.get("eventType") or event.get("type") or "").upper()

        if event_type == "DELETE":
            old = event.get("old") or {}
            raw_id = old.get("id")
            if not raw_id:
                return False
            try:
                movement_id = UUID(str(raw_id))
            except ValueError:
                logger.warning(f"Ignoring DELETE with invalid id: {raw_id!r}")
                return False
            return self._mark_deleted(movement_id)

        if event_type not in ("INSERT", "UPDATE"):
            logger.debug(f"Ignoring realtime event type: {event_type!r}")
            return False

        movement = self._parse(event.get("new") or {})
        if movement is None:
            return False

        if movement.deleted:
            return self._mark_deleted(movement.id)

        if movement.id in self._deleted_ids:
            # Evento atrasado de uma movimentação já excluída
            return False

        current = self._movements.get(movement.id)
        if current == movement:
            return False
        self._movements[movement.id] = movement
        return True

    def apply_all(self, events: Iterable[Dict[str, Any]]) -> int:
        return sum(1 for event in events if self.apply(event))

    @property
    def deleted_ids(self) -> Set[UUID]:
        return set(self._deleted_ids)

    def __contains__(self, movement_id: UUID) -> bool:
        return movement_id in self._movements

    def __len__(self) -> int:
        return len(self._movements)

    def items(self) -> List[MovementRead]:
        """Movimentações visíveis, da mais recente para a mais antiga"""
        return sorted(
            self._movements.values(),
            key=lambda m: (m.created_at is not None, m.created_at),
            reverse=True
        )


def normalize_event(payload: Dict[str, Any]) -> Dict[str, Any]:
    data = payload.get("data")
    if not isinstance(data, dict):
        return payload
    return {
        "eventType": data.get("type") or data.get("eventType"),
        "new": data.get("record") or {},
        "old": data.get("old_record") or {},
    }


class MovementFeedSubscriber:
    """
    Mantém um VisibleMovements em dia com o canal realtime da tabela de
    movimentações.

    Args:
        store: Leitura inicial (e releituras) das movimentações
        product_id: Acompanha só um produto; None = todos
        on_change: Chamado com a lista visível sempre que ela muda
    """

    def __init__(
        self,
        store: StockStore,
        product_id: Optional[UUID] = None,
        on_change: Optional[Callable[[List[MovementRead]], None]] = None
    ):
        self.store = store
        self.product_id = product_id
        self.on_change = on_change
        self.visible = VisibleMovements()
        self.channel = None

    def refresh(self) -> None:
        self.visible.reset(self.store.list_movements(product_id=self.product_id))
        logger.info(f"Movement feed refreshed: {len(self.visible)} visible")

    def handle(self, payload: Dict[str, Any]) -> bool:
        event = normalize_event(payload)
        record = event.get("new") or {}
        if self.product_id is not None and record.get("product_id") not in (None, str(self.product_id)):
            return False

        changed = self.visible.apply(event)
        if changed and self.on_change is not None:
            self.on_change(self.visible.items())
        return changed

    async def subscribe(self, client):
        """Lê o estado atual e assina INSERT/UPDATE/DELETE da tabela"""
        self.refresh()
        options = {"schema": "public", "table": MOVEMENTS_TABLE}
        if self.product_id is not None:
            options["filter"] = f"product_id=eq.{self.product_id}"

        self.channel = client.channel(f"{MOVEMENTS_TABLE}-feed")
        self.channel.on_postgres_changes("*", callback=self.handle, **options)
        await self.channel.subscribe()
        logger.info(f"Subscribed to realtime changes on {MOVEMENTS_TABLE}")
        return self.channel

    async def unsubscribe(self) -> None:
        if self.channel is not None:
            await self.channel.unsubscribe()
            self.channel = None
