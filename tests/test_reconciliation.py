"""
Testes para conferência e correção de estoque
"""
import pytest
from decimal import Decimal
from uuid import uuid4
from stashkeeper.services.ledger import NEGATIVE_ADJUSTMENT_NOTE, compensation_note
from stashkeeper.services.movement_service import MovementService
from stashkeeper.services.reconciliation import (
    check_all_stocks,
    fix_all_stocks,
    fix_product_stock,
    recalculate_product_stock,
    verify_compensation_integrity,
)


@pytest.fixture
def service(store):
    return MovementService(store)


def _raw_movement(store, product, type_, quantity, **extra):
    """Grava uma movimentação sem passar pelo MovementService (dado legado)"""
    return store.insert_movement({
        "product_id": product.id,
        "type": type_,
        "quantity": Decimal(str(quantity)),
        "unit": product.unit,
        **extra,
    })


def test_recalculate_consistent(store, service, make_product):
    product = make_product(store, initial_quantity=10)
    service.register_movement(product.id, "entrada", 5)
    service.register_movement(product.id, "saida", 500, unit="g")

    check = recalculate_product_stock(store, product.id)

    assert check.is_consistent is True
    assert check.calculated_stock == Decimal("14.500")
    assert check.movements == 2


def test_recalculate_detects_difference(store, service, make_product):
    product = make_product(store, initial_quantity=10)
    service.register_movement(product.id, "entrada", 5)
    store.write_product(product.id, Decimal("42"))

    check = recalculate_product_stock(store, product.id)

    assert check.is_consistent is False
    assert check.current_stock == Decimal("42.000")
    assert check.calculated_stock == Decimal("15.000")
    assert check.difference == Decimal("27.000")


def test_check_all_stocks(store, service, make_product):
    ok = make_product(store, name="Arroz", initial_quantity=1)
    broken = make_product(store, name="Feijão", initial_quantity=1)
    negative = make_product(store, name="Leite", unit="l")
    store.write_product(broken.id, Decimal("3"))
    _raw_movement(store, negative, "saida", 2)

    report = check_all_stocks(store)

    assert report.consistent == 1
    assert report.inconsistent == 2
    assert report.negative == 1
    assert {c.product_id for c in report.checks_to_fix} == {broken.id, negative.id}
    assert ok.id not in {c.product_id for c in report.checks_to_fix}


def test_fix_overwrite(store, make_product):
    product = make_product(store, initial_quantity=3)
    store.write_product(product.id, Decimal("7"))

    result = fix_product_stock(store, product.id, mode="overwrite")

    assert result.action == "overwrite"
    assert result.previous_stock == Decimal("7.000")
    assert result.new_stock == Decimal("3.000")
    assert store.read_product(product.id).quantity == Decimal("3")


def test_fix_consistent_does_nothing(store, make_product):
    product = make_product(store, initial_quantity=3)

    result = fix_product_stock(store, product.id)

    assert result.action == "none"
    assert result.success is True


def test_fix_auto_negative_adds_adjustment(store, make_product):
    """Histórico negativo: entrada de ajuste com o valor absoluto e estoque zero"""
    product = make_product(store)
    _raw_movement(store, product, "saida", 10)

    result = fix_product_stock(store, product.id, mode="auto")

    assert result.action == "adjustment"
    assert result.adjustment_quantity == Decimal("10.000")
    assert result.new_stock == Decimal("0.000")
    adjustment = store.read_movement(result.adjustment_movement_id)
    assert adjustment.type == "entrada"
    assert adjustment.notes == NEGATIVE_ADJUSTMENT_NOTE
    assert store.read_product(product.id).quantity == Decimal("0")

    check = recalculate_product_stock(store, product.id)
    assert check.is_consistent is True
    assert check.is_negative is False


def test_fix_overwrite_allows_negative(store, make_product):
    product = make_product(store)
    _raw_movement(store, product, "saida", 10)

    result = fix_product_stock(store, product.id, mode="overwrite")

    assert result.action == "overwrite"
    assert store.read_product(product.id).quantity == Decimal("-10")


def test_fix_zero(store, make_product):
    product = make_product(store, initial_quantity=3)

    result = fix_product_stock(store, product.id, mode="zero")

    assert result.action == "zero"
    assert store.read_product(product.id).quantity == Decimal("0")


def test_fix_all_stocks(store, make_product):
    broken = make_product(store, name="Arroz", initial_quantity=1)
    negative = make_product(store, name="Feijão")
    make_product(store, name="Leite", unit="l", initial_quantity=2)
    store.write_product(broken.id, Decimal("3"))
    _raw_movement(store, negative, "saida", 4)

    report = fix_all_stocks(store, mode="auto")

    assert report.corrected == 2
    assert report.adjusted == 1
    assert report.failed == 0
    assert check_all_stocks(store).inconsistent == 0


def test_compensation_integrity_intact(store, service, make_product):
    product = make_product(store)
    entrada = service.register_movement(product.id, "entrada", 100)
    service.register_movement(product.id, "saida", 95)
    service.delete_movement(entrada.id)

    checks = verify_compensation_integrity(store)

    assert len(checks) == 1
    assert checks[0].original_id == entrada.id
    assert checks[0].is_intact is True


def test_compensation_integrity_original_restored(store, service, make_product):
    product = make_product(store)
    entrada = service.register_movement(product.id, "entrada", 100)
    service.register_movement(product.id, "saida", 95)
    service.delete_movement(entrada.id)
    store.update_movement(entrada.id, deleted=False)

    checks = verify_compensation_integrity(store)

    assert checks[0].is_intact is False
    assert checks[0].status == "Movimentação original NÃO está excluída"


def test_compensation_integrity_legacy_notes(store, make_product):
    """Compensações antigas só têm o id nas notas"""
    product = make_product(store)
    _raw_movement(store, product, "entrada", 1, notes=compensation_note(uuid4()))
    _raw_movement(store, product, "entrada", 1, notes="Compensação automática manual")

    checks = {c.status: c for c in verify_compensation_integrity(store)}

    assert checks["Movimentação original não encontrada no banco"].is_intact is False
    assert checks["ID original não encontrado nas notas"].is_intact is False


def test_negative_history_matching_stored_quantity_is_fixed(store, make_product):
    """Estoque gravado igual ao histórico negativo ainda precisa de ajuste"""
    product = make_product(store, name="Leite", unit="l")
    _raw_movement(store, product, "saida", 3)
    store.write_product(product.id, Decimal("-3"))

    report = check_all_stocks(store)
    assert report.consistent == 1
    assert report.negative == 1
    assert [c.product_id for c in report.checks_to_fix] == [product.id]

    fix_report = fix_all_stocks(store, mode="auto")

    assert fix_report.corrected == 1
    assert fix_report.adjusted == 1
    assert fix_report.results[0].adjustment_quantity == Decimal("3.000")
    assert store.read_product(product.id).quantity == Decimal("0")
    check = recalculate_product_stock(store, product.id)
    assert check.is_consistent is True
    assert check.is_negative is False
