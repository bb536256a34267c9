from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from stashkeeper.database import Base

MOVEMENT_TYPES = ("entrada", "saida")


class Movement(Base):
    __tablename__ = "movements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    type = Column(String(16), nullable=False)  # "entrada" | "saida"
    quantity = Column(Numeric(12, 3), nullable=False)
    unit = Column(String(32), nullable=True)  # None = unidade do produto
    notes = Column(String(500), nullable=True)
    # Movimentação cuja exclusão gerou esta entrada de compensação
    compensates_movement_id = Column(Uuid, ForeignKey("movements.id"), nullable=True, index=True)
    deleted = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    # Relationships
    product = relationship("Product", back_populates="movements")
