"""
Conferência e correção de estoque em lote.

Recalcula o estoque de cada produto a partir do histórico de movimentações
não excluídas (estoque inicial + entradas - saídas, já convertidas para a
unidade do produto), compara com a quantidade gravada e, se pedido, corrige:
- sobrescrevendo a quantidade quando o valor calculado não é negativo
- registrando uma entrada de ajuste quando o valor calculado é negativo
"""
import logging
from decimal import Decimal
from typing import Dict, List
from uuid import UUID
from stashkeeper.config import settings
from stashkeeper.schemas.reconciliation import (
    CompensationCheck,
    FixMode,
    FixReport,
    FixResult,
    StockCheck,
    StockReport,
)
from stashkeeper.services.exceptions import StockError
from stashkeeper.services.ledger import (
    ENTRADA,
    NEGATIVE_ADJUSTMENT_NOTE,
    is_compensation,
    parse_compensated_id,
    replay,
)
from stashkeeper.services.store import StockStore
from stashkeeper.services.units import round_quantity

logger = logging.getLogger(__name__)


def recalculate_product_stock(store: StockStore, product_id: UUID) -> StockCheck:
    """
    Recalcula o estoque de um produto a partir das movimentações.

    Raises:
        NotFound: produto inexistente
    """
    product = store.read_product(product_id)
    movements = store.list_movements(product_id=product_id, deleted=False)

    calculated = replay(product.initial_quantity, movements, product.unit)
    current = round_quantity(product.quantity)
    difference = abs(current - calculated)

    return StockCheck(
        product_id=product.id,
        name=product.name,
        code=product.code,
        unit=product.unit,
        current_stock=current,
        calculated_stock=calculated,
        difference=difference,
        movements=len(movements),
        is_consistent=difference < Decimal(str(settings.CONSISTENCY_EPSILON)),
        is_negative=calculated < 0,
    )


def check_all_stocks(store: StockStore) -> StockReport:
    """Confere todos os produtos; erros por produto entram no relatório"""
    report = StockReport()

    for product in store.list_products():
        try:
            check = recalculate_product_stock(store, product.id)
        except StockError as e:
            logger.error(f"Error recalculating stock for product {product.id}: {e}")
            check = StockCheck(product_id=product.id, name=product.name, code=product.code, error=str(e))

        report.checks.append(check)
        if check.is_consistent:
            report.consistent += 1
        else:
            report.inconsistent += 1
        if check.is_negative:
            report.negative += 1

    logger.info(
        f"Stock check: {report.consistent} consistent, {report.inconsistent} inconsistent, "
        f"{report.negative} negative"
    )
    return report


def _add_adjustment(store: StockStore, check: StockCheck) -> FixResult:
    """Entrada de ajuste que leva o histórico negativo exatamente a zero"""
    adjustment = abs(check.calculated_stock)
    with store.transaction():
        movement = store.insert_movement({
            "product_id": check.product_id,
            "type": ENTRADA,
            "quantity": adjustment,
            "unit": check.unit,
            "notes": NEGATIVE_ADJUSTMENT_NOTE,
        })
        store.write_product(check.product_id, Decimal("0.000"))

    logger.info(f"Adjustment of +{adjustment} {check.unit} added for product {check.product_id}")
    return FixResult(
        product_id=check.product_id,
        success=True,
        action="adjustment",
        previous_stock=check.current_stock,
        new_stock=Decimal("0.000"),
        adjustment_quantity=adjustment,
        adjustment_movement_id=movement.id,
    )


def fix_product_stock(store: StockStore, product_id: UUID, mode: FixMode = "auto") -> FixResult:
    """
    Corrige o estoque de um produto.

    Args:
        store: Acesso ao banco
        product_id: Produto a corrigir
        mode:
            - "auto": sobrescreve com o calculado; se negativo, registra entrada de ajuste
            - "overwrite": grava o valor calculado (mesmo negativo, uso administrativo)
            - "zero": zera o estoque

    Returns:
        FixResult com a ação aplicada
    """
    check = recalculate_product_stock(store, product_id)

    if mode == "zero":
        store.write_product(product_id, Decimal("0.000"))
        return FixResult(
            product_id=product_id,
            success=True,
            action="zero",
            previous_stock=check.current_stock,
            new_stock=Decimal("0.000"),
        )

    if check.is_consistent and not (mode == "auto" and check.is_negative):
        return FixResult(
            product_id=product_id,
            success=True,
            action="none",
            previous_stock=check.current_stock,
            new_stock=check.current_stock,
        )

    if mode == "auto" and check.is_negative:
        return _add_adjustment(store, check)

    store.write_product(product_id, check.calculated_stock)
    logger.info(
        f"Product {product_id} stock overwritten: {check.current_stock} -> {check.calculated_stock}"
    )
    return FixResult(
        product_id=product_id,
        success=True,
        action="overwrite",
        previous_stock=check.current_stock,
        new_stock=check.calculated_stock,
    )


def fix_all_stocks(store: StockStore, mode: FixMode = "auto") -> FixReport:
    """Corrige os produtos inconsistentes ou com histórico negativo"""
    report = FixReport()

    for check in check_all_stocks(store).checks_to_fix:
        try:
            result = fix_product_stock(store, check.product_id, mode)
        except StockError as e:
            logger.error(f"Error fixing stock for product {check.product_id}: {e}")
            result = FixResult(product_id=check.product_id, success=False, action="failed", error=str(e))

        report.results.append(result)
        if not result.success:
            report.failed += 1
        elif result.action != "none":
            report.corrected += 1
            if result.action == "adjustment":
                report.adjusted += 1

    return report


def verify_compensation_integrity(store: StockStore) -> List[CompensationCheck]:
    """
    Confere as entradas de compensação automática.

    Íntegra quando a movimentação original existe e:
    - a compensação está ativa e a original excluída, ou
    - a compensação foi revertida (excluída) e a original continua ativa
    """
    movements = store.list_movements()
    by_id: Dict[UUID, object] = {m.id: m for m in movements}
    results = []

    for compensation in (m for m in movements if is_compensation(m)):
        original_id = compensation.compensates_movement_id or parse_compensated_id(compensation.notes)

        if original_id is None:
            results.append(CompensationCheck(
                compensation_id=compensation.id,
                product_id=compensation.product_id,
                status="ID original não encontrado nas notas",
                is_intact=False,
            ))
            continue

        original = by_id.get(original_id)
        if original is None:
            status, intact = "Movimentação original não encontrada no banco", False
        elif not compensation.deleted and original.deleted:
            status, intact = "Original excluída e compensação ativa", True
        elif compensation.deleted and not original.deleted:
            status, intact = "Compensação revertida, original ativa", True
        elif compensation.deleted:
            status, intact = "Compensação excluída junto com a original", False
        else:
            status, intact = "Movimentação original NÃO está excluída", False

        results.append(CompensationCheck(
            compensation_id=compensation.id,
            original_id=original_id,
            product_id=compensation.product_id,
            status=status,
            is_intact=intact,
        ))

    broken = sum(1 for r in results if not r.is_intact)
    logger.info(f"Compensation integrity: {len(results)} checked, {broken} with problems")
    return results

