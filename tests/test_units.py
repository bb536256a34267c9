"""
Testes para normalização e conversão de unidades
"""
import pytest
from decimal import Decimal
from stashkeeper.config import settings
from stashkeeper.services.exceptions import InvalidUnit
from stashkeeper.services.units import (
    are_compatible,
    convert,
    format_quantity,
    full_unit_name,
    is_decimal_unit,
    normalize_unit,
    related_units,
    round_quantity,
    to_decimal,
    unit_family,
)


def test_normalize_unit_synonyms():
    """Testa normalização de grafias livres"""
    assert normalize_unit("Litros") == "l"
    assert normalize_unit(" KG ") == "kg"
    assert normalize_unit("gramas") == "g"
    assert normalize_unit("mililitro") == "ml"
    assert normalize_unit("kilos") == "kg"


def test_normalize_unit_unknown_and_empty():
    """Unidades desconhecidas voltam em minúsculas; vazio vira string vazia"""
    assert normalize_unit("Caixa") == "caixa"
    assert normalize_unit(None) == ""
    assert normalize_unit("") == ""


def test_unit_family():
    assert unit_family("ml") == "volume"
    assert unit_family("Litro") == "volume"
    assert unit_family("gramas") == "weight"
    assert unit_family("unidade") is None


def test_are_compatible():
    """Testa compatibilidade entre unidades"""
    assert are_compatible("kg", "g") is True
    assert are_compatible("litros", "ml") is True
    assert are_compatible("l", "kg") is False
    assert are_compatible("caixa", "Caixa") is True
    assert are_compatible("caixa", "un") is False


def test_convert_same_family():
    """Testa conversões g <-> kg e ml <-> l"""
    assert convert(Decimal("2.5"), "kg", "g") == Decimal("2500.000")
    assert convert(500, "ml", "l") == Decimal("0.500")
    assert convert(1, "g", "kg") == Decimal("0.001")
    assert convert("2", "litros", "ml") == Decimal("2000.000")


@pytest.mark.parametrize("value,big,small", [
    ("1.234", "kg", "g"),
    ("0.001", "kg", "g"),
    ("2.5", "l", "ml"),
    ("0.125", "l", "ml"),
])
def test_convert_round_trip_from_large_unit(value, big, small):
    """kg -> g -> kg e l -> ml -> l com até 3 casas voltam exatos"""
    assert convert(convert(value, big, small), small, big) == Decimal(value)


@pytest.mark.parametrize("value,small,big", [
    (1500, "g", "kg"),
    (7, "g", "kg"),
    (250, "ml", "l"),
    (1, "ml", "l"),
])
def test_convert_round_trip_integer_small_unit(value, small, big):
    assert convert(convert(value, small, big), big, small) == Decimal(value)


def test_convert_fraction_of_gram_is_lost():
    """g -> kg arredonda para 3 casas: 1,5 g vira 0,002 kg"""
    assert convert("1.5", "g", "kg") == Decimal("0.002")
    assert convert(convert("1.5", "g", "kg"), "kg", "g") == Decimal("2.000")


def test_convert_same_unit_rounds():
    """Unidades iguais devolvem o valor arredondado em 3 casas"""
    assert convert(Decimal("0.0004"), "kg", "kg") == Decimal("0.000")
    assert convert(Decimal("1.2345"), "kg", "quilos") == Decimal("1.235")


def test_convert_default_unit():
    """'default' ou unidade vazia = unidade do produto"""
    assert convert("10", "default", "kg") == Decimal("10.000")
    assert convert(3, None, "l") == Decimal("3.000")


def test_convert_incompatible_passes_through(caplog):
    """Par incompatível sem modo estrito devolve o valor original com aviso"""
    assert convert(3, "kg", "l", strict=False) == Decimal("3.000")
    assert "Cannot convert from kg to l" in caplog.text


def test_convert_incompatible_strict():
    with pytest.raises(InvalidUnit):
        convert(3, "kg", "l", strict=True)


def test_convert_strict_from_settings(monkeypatch):
    """STRICT_UNIT_CONVERSION vale quando strict não é informado"""
    monkeypatch.setattr(settings, "STRICT_UNIT_CONVERSION", True)
    with pytest.raises(InvalidUnit):
        convert(1, "caixa", "kg")


def test_to_decimal():
    """Testa conversão de quantidades para Decimal"""
    assert to_decimal("1,5") == Decimal("1.5")
    assert to_decimal(" 2.25 ") == Decimal("2.25")
    assert to_decimal(None) == Decimal("0")
    assert to_decimal("") == Decimal("0")
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(7) == Decimal("7")


def test_to_decimal_invalid():
    with pytest.raises(ValueError):
        to_decimal("abc")
    with pytest.raises(ValueError):
        to_decimal(True)


def test_round_quantity_half_up():
    assert round_quantity(Decimal("1.0005")) == Decimal("1.001")
    assert round_quantity(Decimal("2.4444")) == Decimal("2.444")
    assert round_quantity(Decimal("0.1") + Decimal("0.2")) == Decimal("0.300")


def test_related_units():
    assert related_units("l") == ["ml"]
    assert related_units("quilos") == ["g"]
    assert related_units("un") == []


def test_is_decimal_unit():
    assert is_decimal_unit("kg") is True
    assert is_decimal_unit("ml") is True
    assert is_decimal_unit("unidade") is False


def test_full_unit_name():
    assert full_unit_name("quilos") == "quilo(s)"
    assert full_unit_name("ml") == "mililitro(s)"
    assert full_unit_name("pacote") == "pacote"


def test_format_quantity():
    """Testa formatação conforme a unidade"""
    assert format_quantity(1500, "ml") == "1500"
    assert format_quantity(Decimal("1499.5"), "g") == "1500"
    assert format_quantity(Decimal("1.50"), "l") == "1,5"
    assert format_quantity(2, "kg") == "2"
    assert format_quantity(Decimal("0.125"), "kg") == "0,13"
    assert format_quantity(3, "un") == "3,00"
