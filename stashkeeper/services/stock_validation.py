"""
Validação de estoque antes de registrar uma saída.
"""
from decimal import Decimal
from typing import NamedTuple, Optional
from stashkeeper.config import settings
from stashkeeper.services.exceptions import InvalidUnit, InsufficientStock
from stashkeeper.services.units import (
    Number,
    are_compatible,
    convert,
    normalize_unit,
    to_decimal,
)

INSUFFICIENT_STOCK_MESSAGE = "Quantidade não pode ser maior que o estoque disponível"


class StockValidation(NamedTuple):
    valid: bool
    message: Optional[str] = None


def validate_stock(
    available: Number,
    requested_qty: Number,
    requested_unit: Optional[str],
    product_unit: Optional[str]
) -> StockValidation:
    """
    Verifica se a quantidade solicitada cabe no estoque disponível.

    1. As unidades precisam ser da mesma família (volume ou peso) ou iguais
    2. A quantidade é convertida para a unidade do produto
    3. Válido se convertida <= disponível + STOCK_TOLERANCE

    Args:
        available: Estoque disponível, na unidade do produto
        requested_qty: Quantidade solicitada
        requested_unit: Unidade da solicitação ("default" ou vazio = unidade do produto)
        product_unit: Unidade do produto

    Returns:
        StockValidation(valid, message)
    """
    if not requested_unit or requested_unit == 'default':
        requested_unit = product_unit

    if not are_compatible(requested_unit, product_unit):
        return StockValidation(
            False,
            f"Unidades incompatíveis: {normalize_unit(product_unit)} e {normalize_unit(requested_unit)}"
        )

    converted = convert(requested_qty, requested_unit, product_unit)
    tolerance = Decimal(str(settings.STOCK_TOLERANCE))

    if converted > to_decimal(available) + tolerance:
        return StockValidation(False, INSUFFICIENT_STOCK_MESSAGE)

    return StockValidation(True, None)


def ensure_stock(
    available: Number,
    requested_qty: Number,
    requested_unit: Optional[str],
    product_unit: Optional[str]
) -> None:
    """Mesma regra de validate_stock, levantando InvalidUnit / InsufficientStock"""
    if not requested_unit or requested_unit == 'default':
        requested_unit = product_unit

    if not are_compatible(requested_unit, product_unit):
        raise InvalidUnit(
            f"Unidades incompatíveis: {normalize_unit(product_unit)} e {normalize_unit(requested_unit)}"
        )

    result = validate_stock(available, requested_qty, requested_unit, product_unit)
    if not result.valid:
        raise InsufficientStock(result.message)
