"""
Busca de produtos por código ou nome (fuzzy matching com rapidfuzz).
"""
import logging
from typing import List, Optional, Tuple
from rapidfuzz import fuzz, process
from stashkeeper.schemas.product import ProductRead
from stashkeeper.services.store import StockStore

logger = logging.getLogger(__name__)


def search_products(
    store: StockStore,
    query: str,
    threshold: int = 70,
    limit: int = 5
) -> List[Tuple[ProductRead, float]]:
    """
    Busca produtos pelo nome.

    Args:
        store: Acesso ao banco
        query: Texto digitado
        threshold: Similaridade mínima (0-100)
        limit: Número máximo de resultados

    Returns:
        Lista de (produto, score) ordenada por score
    """
    if not query or not query.strip():
        return []

    products = store.list_products()
    if not products:
        return []

    names = {p.id: p.name.lower() for p in products}
    by_id = {p.id: p for p in products}

    results = process.extract(
        query.lower().strip(),
        names,
        scorer=fuzz.WRatio,
        score_cutoff=threshold,
        limit=limit
    )

    return [(by_id[product_id], score) for _, score, product_id in results]


def find_product(store: StockStore, code_or_name: str, threshold: int = 85) -> Optional[ProductRead]:
    """Código exato primeiro; senão o nome mais parecido acima do threshold"""
    products = store.list_products()
    for product in products:
        if product.code == code_or_name:
            return product

    matches = search_products(store, code_or_name, threshold=threshold, limit=1)
    if matches:
        product, score = matches[0]
        logger.debug(f"Product fuzzy matched: '{code_or_name}' -> {product.id} (score: {score:.1f}%)")
        return product

    return None
