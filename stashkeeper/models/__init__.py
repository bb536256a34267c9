from stashkeeper.database import Base
from stashkeeper.models.product import Product
from stashkeeper.models.movement import Movement, MOVEMENT_TYPES

__all__ = [
    "Base",
    "Product",
    "Movement",
    "MOVEMENT_TYPES",
]
