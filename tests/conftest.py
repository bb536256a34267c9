"""
Fixtures compartilhadas: banco SQLite em memória e um store em memória sem transação
"""
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from stashkeeper.models import Base
from stashkeeper.schemas.movement import MovementRead
from stashkeeper.schemas.product import ProductCreate, ProductRead
from stashkeeper.services.exceptions import NotFound, StoreError
from stashkeeper.services.store import SqlAlchemyStockStore, StockStore

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class InMemoryStockStore(StockStore):
    """Store sem transação, com falhas simuladas (mesmo contrato do Supabase)"""
    atomic = False

    def __init__(self):
        self.products: Dict[UUID, ProductRead] = {}
        self.movements: Dict[UUID, MovementRead] = {}
        self.fail_write_product = False
        self.fail_update_for: set = set()
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def read_product(self, product_id: UUID) -> ProductRead:
        if product_id not in self.products:
            raise NotFound(f"Produto {product_id} não encontrado")
        return self.products[product_id].model_copy()

    def list_products(self) -> List[ProductRead]:
        return sorted(self.products.values(), key=lambda p: p.name)

    def create_product(self, data: ProductCreate) -> ProductRead:
        product = ProductRead(
            id=uuid4(),
            quantity=data.initial_quantity,
            created_at=self._tick(),
            **data.model_dump()
        )
        self.products[product.id] = product
        return product.model_copy()

    def write_product(self, product_id: UUID, quantity: Decimal) -> None:
        if self.fail_write_product:
            raise StoreError("falha simulada ao gravar produto")
        product = self.read_product(product_id)
        self.products[product_id] = product.model_copy(update={"quantity": quantity})

    def read_movement(self, movement_id: UUID) -> MovementRead:
        if movement_id not in self.movements:
            raise NotFound(f"Movimentação {movement_id} não encontrada")
        return self.movements[movement_id].model_copy()

    def list_movements(
        self,
        product_id: Optional[UUID] = None,
        deleted: Optional[bool] = None
    ) -> List[MovementRead]:
        rows = [
            m for m in self.movements.values()
            if (product_id is None or m.product_id == product_id)
            and (deleted is None or m.deleted == deleted)
        ]
        return sorted(rows, key=lambda m: m.created_at)

    def insert_movement(self, data: Dict[str, Any]) -> MovementRead:
        movement = MovementRead(id=uuid4(), created_at=self._tick(), **data)
        self.movements[movement.id] = movement
        return movement.model_copy()

    def update_movement(self, movement_id: UUID, **fields: Any) -> MovementRead:
        if movement_id in self.fail_update_for:
            raise StoreError("falha simulada ao atualizar movimentação")
        movement = self.read_movement(movement_id)
        updated = movement.model_copy(update=fields)
        self.movements[movement_id] = updated
        return updated.model_copy()


@pytest.fixture(scope="function")
def db_session():
    """Cria uma sessão de banco de dados para testes"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db_session):
    """Store transacional sobre o SQLite em memória"""
    return SqlAlchemyStockStore(db_session)


@pytest.fixture
def memory_store():
    """Store sem transação"""
    return InMemoryStockStore()


@pytest.fixture
def make_product():
    """Factory de produtos para qualquer store"""
    counter = {"n": 0}

    def _make(target: StockStore, name: str = "Arroz", unit: str = "kg", initial_quantity="0", code=None):
        counter["n"] += 1
        return target.create_product(ProductCreate(
            code=code or f"P{counter['n']:03d}",
            name=name,
            unit=unit,
            initial_quantity=Decimal(str(initial_quantity)),
        ))

    return _make
