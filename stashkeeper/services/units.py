"""
Unidades de medida: normalização de grafias livres e conversão entre
unidades da mesma dimensão (massa: g <-> kg; volume: ml <-> l).
"""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union
from stashkeeper.config import settings
from stashkeeper.services.exceptions import InvalidUnit

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float, str]

UNIT_SYNONYMS = {
    'l': 'l', 'litro': 'l', 'litros': 'l', 'lt': 'l', 'lts': 'l',
    'ml': 'ml', 'mililitro': 'ml', 'mililitros': 'ml',
    'kg': 'kg', 'quilo': 'kg', 'quilos': 'kg', 'quilograma': 'kg',
    'quilogramas': 'kg', 'kilo': 'kg', 'kilos': 'kg',
    'g': 'g', 'grama': 'g', 'gramas': 'g',
}

UNIT_FAMILIES = {
    'l': 'volume',
    'ml': 'volume',
    'kg': 'weight',
    'g': 'weight',
}

# (origem, destino) -> fator
CONVERSION_FACTORS = {
    ('g', 'kg'): Decimal('0.001'),
    ('kg', 'g'): Decimal('1000'),
    ('ml', 'l'): Decimal('0.001'),
    ('l', 'ml'): Decimal('1000'),
}

FULL_UNIT_NAMES = {
    'l': 'litro(s)',
    'ml': 'mililitro(s)',
    'kg': 'quilo(s)',
    'g': 'grama(s)',
    'un': 'unidade(s)',
    'cx': 'caixa(s)',
}


def normalize_unit(raw: Optional[str]) -> str:
    """
    Normaliza a unidade para o símbolo canônico (l, ml, kg, g).
    Grafias desconhecidas (ex: "unidade", "caixa") voltam apenas em minúsculas.
    """
    if not raw:
        return ""
    unit = raw.lower().strip()
    return UNIT_SYNONYMS.get(unit, unit)


def unit_family(unit: Optional[str]) -> Optional[str]:
    """Retorna "volume", "weight" ou None para unidades sem dimensão conhecida"""
    return UNIT_FAMILIES.get(normalize_unit(unit))


def are_compatible(unit_a: Optional[str], unit_b: Optional[str]) -> bool:
    """Mesma família (volume/peso) ou exatamente a mesma unidade normalizada"""
    a = normalize_unit(unit_a)
    b = normalize_unit(unit_b)
    if a == b:
        return True
    family = UNIT_FAMILIES.get(a)
    return family is not None and family == UNIT_FAMILIES.get(b)


def related_units(unit: Optional[str]) -> list[str]:
    """Unidades para as quais existe conversão (ex: 'l' -> ['ml'])"""
    normalized = normalize_unit(unit)
    return [dst for (src, dst) in CONVERSION_FACTORS if src == normalized]


def is_decimal_unit(unit: Optional[str]) -> bool:
    """Unidades que aceitam valores fracionados"""
    return unit_family(unit) is not None


def to_decimal(value: Optional[Number]) -> Decimal:
    """
    Converte a quantidade para Decimal.
    Dados antigos podem vir como string, inclusive com vírgula decimal ("1,5").
    """
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Quantidade inválida: {value!r}")
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, int):
        return Decimal(value)
    try:
        return Decimal(str(value).strip().replace(',', '.'))
    except InvalidOperation as e:
        raise ValueError(f"Quantidade inválida: {value!r}") from e


def round_quantity(value: Number) -> Decimal:
    """Arredonda para QUANTITY_PRECISION casas (padrão 3) para conter o acúmulo de erro"""
    exponent = Decimal(1).scaleb(-settings.QUANTITY_PRECISION)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def convert(
    value: Number,
    from_unit: Optional[str],
    to_unit: Optional[str],
    strict: Optional[bool] = None
) -> Decimal:
    """
    Converte a quantidade entre unidades da mesma dimensão.

    Unidades iguais ou "default" devolvem o valor arredondado. Para pares
    incompatíveis (ex: kg -> l, caixa -> kg) o comportamento depende de
    `strict` (padrão: settings.STRICT_UNIT_CONVERSION):
    - False: devolve o valor sem conversão e registra um aviso
    - True: levanta InvalidUnit

    Args:
        value: Quantidade na unidade de origem
        from_unit: Unidade de origem
        to_unit: Unidade de destino
        strict: Falhar em vez de repassar o valor em pares incompatíveis

    Returns:
        Quantidade na unidade de destino, com 3 casas decimais

    g -> kg e ml -> l também arredondam para 3 casas, então frações abaixo
    de 1 g (ou 1 ml) se perdem: convert(convert(1.5, "g", "kg"), "kg", "g")
    devolve 2.000. Valores inteiros em g/ml e qualquer valor em kg/l com até
    3 casas voltam exatos.
    """
    if strict is None:
        strict = settings.STRICT_UNIT_CONVERSION

    src = normalize_unit(from_unit)
    dst = normalize_unit(to_unit)

    if src == dst or src == 'default' or not src:
        return round_quantity(value)

    factor = CONVERSION_FACTORS.get((src, dst))
    if factor is not None:
        return round_quantity(to_decimal(value) * factor)

    if strict:
        raise InvalidUnit(f"Unidades incompatíveis: {src} e {dst}")

    logger.warning(f"Cannot convert from {src} to {dst}, using original value")
    return round_quantity(value)


def full_unit_name(unit: Optional[str]) -> str:
    """Nome por extenso da unidade (ex: 'kg' -> 'quilo(s)')"""
    return FULL_UNIT_NAMES.get(normalize_unit(unit), unit or "")


def format_quantity(value: Number, unit: Optional[str]) -> str:
    """
    Formata a quantidade conforme a unidade, com vírgula decimal:
    - ml e g: inteiros
    - l e kg: até 2 casas, sem zeros à direita
    - demais: 2 casas
    """
    normalized = normalize_unit(unit)
    number = to_decimal(value)

    if normalized in ('ml', 'g'):
        return str(number.quantize(Decimal('1'), rounding=ROUND_HALF_UP))

    two_places = number.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    if normalized in ('l', 'kg'):
        text = format(two_places, 'f')
        if '.' in text:
            text = text.rstrip('0').rstrip('.')
        return text.replace('.', ',')

    return format(two_places, 'f').replace('.', ',')
