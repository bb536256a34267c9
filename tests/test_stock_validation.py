"""
Testes para validação de estoque antes de saídas
"""
import pytest
from decimal import Decimal
from stashkeeper.services.exceptions import InsufficientStock, InvalidUnit
from stashkeeper.services.stock_validation import (
    INSUFFICIENT_STOCK_MESSAGE,
    StockValidation,
    ensure_stock,
    validate_stock,
)


def test_validate_stock_same_unit():
    assert validate_stock(5, "2.5", "kg", "kg") == StockValidation(True, None)


def test_validate_stock_converts_to_product_unit():
    """2500 g cabem em 2,5 kg"""
    result = validate_stock(Decimal("2.5"), 2500, "g", "kg")
    assert result.valid is True


def test_validate_stock_insufficient_after_conversion():
    result = validate_stock(Decimal("2.5"), 2600, "g", "kg")
    assert result.valid is False
    assert result.message == INSUFFICIENT_STOCK_MESSAGE


def test_validate_stock_tolerance_boundary():
    """Até 0,01 acima do disponível é aceito"""
    assert validate_stock(5, "5.01", "kg", "kg").valid is True
    assert validate_stock(5, "5.011", "kg", "kg").valid is False


def test_validate_stock_incompatible_units():
    result = validate_stock(10, 1, "l", "kg")
    assert result.valid is False
    assert result.message == "Unidades incompatíveis: kg e l"


def test_validate_stock_default_unit():
    """'default' e unidade vazia usam a unidade do produto"""
    assert validate_stock(3, 2, "default", "kg").valid is True
    assert validate_stock(3, 2, None, "kg").valid is True
    assert validate_stock(3, 4, "default", "kg").valid is False


def test_validate_stock_unknown_same_unit():
    assert validate_stock(3, 2, "caixa", "Caixa").valid is True


def test_validate_stock_string_available():
    """Estoque gravado como texto com vírgula"""
    assert validate_stock("1,5", 1500, "ml", "l").valid is True


def test_ensure_stock_raises_insufficient():
    with pytest.raises(InsufficientStock) as exc_info:
        ensure_stock(1, 2, "kg", "kg")
    assert str(exc_info.value) == INSUFFICIENT_STOCK_MESSAGE


def test_ensure_stock_raises_invalid_unit():
    with pytest.raises(InvalidUnit):
        ensure_stock(10, 1, "ml", "kg")


def test_ensure_stock_ok():
    assert ensure_stock(10, 500, "g", "kg") is None
