from sqlalchemy import Column, String, DateTime, Numeric, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from stashkeeper.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    unit = Column(String(32), nullable=False, default="unidade")  # l | ml | kg | g | texto livre
    quantity = Column(Numeric(12, 3), nullable=False, default=0)
    initial_quantity = Column(Numeric(12, 3), nullable=False, default=0)
    min_quantity = Column(Numeric(12, 3), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    movements = relationship("Movement", back_populates="product")
