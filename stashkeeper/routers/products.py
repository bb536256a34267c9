"""
Router para endpoints de produtos
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, Query
from uuid import UUID
from stashkeeper.dependencies import get_store
from stashkeeper.schemas.product import ProductCreate, ProductRead, ProductSearchResult, ProductUnits
from stashkeeper.services.product_lookup import search_products
from stashkeeper.services.store import StockStore
from stashkeeper.services.units import (
    format_quantity,
    full_unit_name,
    is_decimal_unit,
    normalize_unit,
    related_units,
    unit_family,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/products", response_model=List[ProductRead])
async def list_products(store: StockStore = Depends(get_store)):
    """Lista todos os produtos ordenados por nome"""
    return store.list_products()


@router.get("/products/search", response_model=List[ProductSearchResult])
async def search(
    q: str = Query(..., min_length=1),
    threshold: int = Query(70, ge=0, le=100),
    limit: int = Query(5, ge=1, le=50),
    store: StockStore = Depends(get_store)
):
    """
    Busca produtos pelo nome (fuzzy).

    Query params:
    - q: texto da busca
    - threshold: similaridade mínima (padrão: 70)
    - limit: número máximo de resultados (padrão: 5)
    """
    matches = search_products(store, q, threshold=threshold, limit=limit)
    return [ProductSearchResult(product=product, score=score) for product, score in matches]


@router.get("/products/{product_id}", response_model=ProductRead)
async def get_product(product_id: UUID, store: StockStore = Depends(get_store)):
    """Busca um produto por ID"""
    return store.read_product(product_id)


@router.get("/products/{product_id}/units", response_model=ProductUnits)
async def get_product_units(product_id: UUID, store: StockStore = Depends(get_store)):
    """
    Unidades aceitas para movimentar o produto (ex: kg aceita kg e g) e o
    estoque formatado para exibição.
    """
    product = store.read_product(product_id)
    unit = normalize_unit(product.unit)
    return ProductUnits(
        product_id=product.id,
        unit=unit,
        full_name=full_unit_name(unit),
        family=unit_family(unit),
        accepted_units=[unit] + related_units(unit),
        decimal=is_decimal_unit(unit),
        quantity_display=f"{format_quantity(product.quantity, unit)} {unit}",
    )


@router.post("/products", response_model=ProductRead, status_code=201)
async def create_product(data: ProductCreate, store: StockStore = Depends(get_store)):
    """
    Cria um produto. A quantidade começa igual a initial_quantity e a partir
    daí só muda por movimentações.
    """
    product = store.create_product(data)
    logger.info(f"Product created: {product.id} - '{product.name}'")
    return product
