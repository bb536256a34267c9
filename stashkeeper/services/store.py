"""
Acesso ao banco para as regras de estoque.

StockStore expõe as operações lógicas (ler produto, ler/inserir/atualizar
movimentação, gravar quantidade). SqlAlchemyStockStore agrupa as escritas de
uma operação numa única transação; o SupabaseStockStore não tem esse recurso
(ver supabase_store.py) e por isso `atomic` é False lá.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional
from uuid import UUID
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from stashkeeper.models.movement import Movement
from stashkeeper.models.product import Product
from stashkeeper.schemas.movement import MovementRead
from stashkeeper.schemas.product import ProductCreate, ProductRead
from stashkeeper.services.exceptions import NotFound, StoreError

logger = logging.getLogger(__name__)

MOVEMENT_UPDATABLE_FIELDS = {"deleted", "type", "quantity", "unit", "notes"}


class StockStore(ABC):
    atomic: bool = False

    @contextmanager
    def transaction(self) -> Iterator["StockStore"]:
        yield self

    @abstractmethod
    def read_product(self, product_id: UUID) -> ProductRead:
        ...

    @abstractmethod
    def list_products(self) -> List[ProductRead]:
        ...

    @abstractmethod
    def create_product(self, data: ProductCreate) -> ProductRead:
        ...

    @abstractmethod
    def write_product(self, product_id: UUID, quantity: Decimal) -> None:
        ...

    @abstractmethod
    def read_movement(self, movement_id: UUID) -> MovementRead:
        ...

    @abstractmethod
    def list_movements(
        self,
        product_id: Optional[UUID] = None,
        deleted: Optional[bool] = None
    ) -> List[MovementRead]:
        ...

    @abstractmethod
    def insert_movement(self, data: Dict[str, Any]) -> MovementRead:
        ...

    @abstractmethod
    def update_movement(self, movement_id: UUID, **fields: Any) -> MovementRead:
        ...


class SqlAlchemyStockStore(StockStore):
    atomic = True

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator["SqlAlchemyStockStore"]:
        """
        Agrupa as escritas: commit só no bloco mais externo, rollback em qualquer erro.
        """
        self._depth += 1
        try:
            yield self
            if self._depth == 1:
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Erro no banco de dados: {e}") from e
        except Exception:
            self.db.rollback()
            raise
        finally:
            self._depth -= 1

    def _save(self) -> None:
        try:
            if self._depth:
                self.db.flush()
            else:
                self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise StoreError(f"Violação de integridade: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Erro no banco de dados: {e}") from e

    def _get_product(self, product_id: UUID) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise NotFound(f"Produto {product_id} não encontrado")
        return product

    def _get_movement(self, movement_id: UUID) -> Movement:
        movement = self.db.get(Movement, movement_id)
        if not movement:
            raise NotFound(f"Movimentação {movement_id} não encontrada")
        return movement

    def read_product(self, product_id: UUID) -> ProductRead:
        return ProductRead.model_validate(self._get_product(product_id))

    def list_products(self) -> List[ProductRead]:
        products = self.db.query(Product).order_by(Product.name.asc()).all()
        return [ProductRead.model_validate(p) for p in products]

    def create_product(self, data: ProductCreate) -> ProductRead:
        product = Product(**data.model_dump(), quantity=data.initial_quantity)
        self.db.add(product)
        self._save()
        return ProductRead.model_validate(product)

    def write_product(self, product_id: UUID, quantity: Decimal) -> None:
        product = self._get_product(product_id)
        product.quantity = quantity
        self._save()
        logger.debug(f"Product {product_id} quantity set to {quantity}")

    def read_movement(self, movement_id: UUID) -> MovementRead:
        return MovementRead.model_validate(self._get_movement(movement_id))

    def list_movements(
        self,
        product_id: Optional[UUID] = None,
        deleted: Optional[bool] = None
    ) -> List[MovementRead]:
        query = self.db.query(Movement)
        if product_id is not None:
            query = query.filter(Movement.product_id == product_id)
        if deleted is not None:
            query = query.filter(Movement.deleted == deleted)
        movements = query.order_by(Movement.created_at.asc()).all()
        return [MovementRead.model_validate(m) for m in movements]

    def insert_movement(self, data: Dict[str, Any]) -> MovementRead:
        movement = Movement(**data)
        self.db.add(movement)
        self._save()
        return MovementRead.model_validate(movement)

    def update_movement(self, movement_id: UUID, **fields: Any) -> MovementRead:
        unknown = set(fields) - MOVEMENT_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Campos não atualizáveis: {sorted(unknown)}")

        movement = self._get_movement(movement_id)
        for field, value in fields.items():
            setattr(movement, field, value)
        self._save()
        return MovementRead.model_validate(movement)
