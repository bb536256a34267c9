"""
Aritmética do livro de movimentações: sinal das movimentações, recomposição
do estoque (conservação) e plano de exclusão com compensação automática.

Tudo aqui é puro: recebe registros já lidos e devolve valores, sem acessar o banco.
"""
import re
from decimal import Decimal
from typing import Iterable, NamedTuple, Optional
from uuid import UUID
from stashkeeper.services.units import Number, convert, round_quantity, to_decimal

ENTRADA = "entrada"
SAIDA = "saida"

COMPENSATION_PREFIX = "Compensação automática para exclusão da movimentação"
NEGATIVE_ADJUSTMENT_NOTE = "Ajuste automático para compensar estoque negativo (utilitário de correção)"
TOLERANCE_ADJUSTMENT_PREFIX = "Ajuste automático de arredondamento da movimentação"

_COMPENSATION_RE = re.compile(
    r"Compensação automática.*?movimentação\s+([0-9a-fA-F-]{36})"
)


class DeletionPlan(NamedTuple):
    previous_quantity: Decimal
    new_quantity: Decimal
    compensation_quantity: Optional[Decimal] = None

    @property
    def needs_compensation(self) -> bool:
        return self.compensation_quantity is not None


def sign(movement_type: str) -> int:
    """entrada = +1, saida = -1"""
    if movement_type == ENTRADA:
        return 1
    if movement_type == SAIDA:
        return -1
    raise ValueError(f"Tipo de movimentação inválido: {movement_type!r}")


def movement_quantity_in(movement, product_unit: Optional[str]) -> Decimal:
    """Quantidade da movimentação convertida para a unidade do produto"""
    return convert(to_decimal(movement.quantity), movement.unit or product_unit, product_unit)


def signed_quantity(movement, product_unit: Optional[str]) -> Decimal:
    return sign(movement.type) * movement_quantity_in(movement, product_unit)


def replay(
    initial_quantity: Optional[Number],
    movements: Iterable,
    product_unit: Optional[str]
) -> Decimal:
    """
    Recalcula o estoque a partir do histórico:
    inicial + soma(sinal * quantidade convertida) das movimentações não excluídas.
    """
    total = to_decimal(initial_quantity)
    ordered = sorted(
        (m for m in movements if not m.deleted),
        key=lambda m: (m.created_at is None, m.created_at)
    )
    for movement in ordered:
        total += signed_quantity(movement, product_unit)
    return round_quantity(total)


def plan_deletion(movement, current_quantity: Number, product_unit: Optional[str]) -> DeletionPlan:
    """
    Calcula o efeito da exclusão de uma movimentação no estoque do produto.

    - entrada: estoque - quantidade. Se ficar negativo, a diferença vira uma
      entrada de compensação e o estoque fica em zero.
    - saida: estoque + quantidade (nunca precisa de compensação).
    """
    current = round_quantity(current_quantity)
    reversal = movement_quantity_in(movement, product_unit)

    if movement.type == ENTRADA:
        new_quantity = round_quantity(current - reversal)
        if new_quantity < 0:
            return DeletionPlan(current, Decimal("0.000"), abs(new_quantity))
        return DeletionPlan(current, new_quantity)

    if movement.type == SAIDA:
        return DeletionPlan(current, round_quantity(current + reversal))

    raise ValueError(f"Tipo de movimentação inválido: {movement.type!r}")


def compensation_note(movement_id: UUID) -> str:
    return f"{COMPENSATION_PREFIX} {movement_id}"


def tolerance_note(movement_id: UUID) -> str:
    return f"{TOLERANCE_ADJUSTMENT_PREFIX} {movement_id}"


def parse_compensated_id(notes: Optional[str]) -> Optional[UUID]:
    """Extrai o id da movimentação original das notas de uma compensação"""
    if not notes:
        return None
    match = _COMPENSATION_RE.search(notes)
    if not match:
        return None
    try:
        return UUID(match.group(1))
    except ValueError:
        return None


def is_compensation(movement) -> bool:
    if getattr(movement, "compensates_movement_id", None):
        return True
    return bool(movement.notes and "Compensação automática" in movement.notes)
