"""
Utilitário de correção de estoque.

Sem --product, confere todos os produtos e corrige os inconsistentes.
Com --product (código ou nome), corrige apenas aquele produto.

Modos:
    auto       grava o valor calculado; se negativo, registra entrada de ajuste [padrão]
    overwrite  grava o valor calculado, mesmo negativo
    zero       zera o estoque

Uso:
    python -m stashkeeper.scripts.fix_inventory [--product CODIGO_OU_NOME] [--mode auto] [--yes]
"""
import argparse
import sys
from typing import List, Optional
from stashkeeper.dependencies import get_store
from stashkeeper.schemas.reconciliation import FixResult
from stashkeeper.services.product_lookup import find_product
from stashkeeper.services.reconciliation import (
    check_all_stocks,
    fix_all_stocks,
    fix_product_stock,
    recalculate_product_stock,
)

YES_ANSWERS = {"s", "sim", "y", "yes"}


def ask_confirmation(question: str) -> bool:
    return input(question).strip().lower() in YES_ANSWERS


def print_result(name: str, unit: Optional[str], result: FixResult) -> None:
    if not result.success:
        print(f"[ERRO] {name}: {result.error}")
    elif result.action == "none":
        print(f"[OK] {name}: estoque já está consistente")
    elif result.action == "adjustment":
        print(f"[OK] {name}: ajuste de +{result.adjustment_quantity} {unit}, estoque agora {result.new_stock}")
    else:
        print(f"[OK] {name}: {result.previous_stock} -> {result.new_stock} {unit}")


def fix_single_product(store, code_or_name: str, mode: str, assume_yes: bool) -> int:
    product = find_product(store, code_or_name)
    if product is None:
        print(f"[ERRO] Produto não encontrado: {code_or_name}")
        return 1

    check = recalculate_product_stock(store, product.id)
    print(f"Produto: {check.name} ({check.code})")
    print(f"  Estoque atual: {check.current_stock} {check.unit}")
    print(f"  Estoque calculado: {check.calculated_stock} {check.unit}")

    if check.is_consistent and not check.is_negative and mode != "zero":
        print("[OK] Estoque já está consistente!")
        return 0

    if check.is_negative:
        print("  Estoque calculado é negativo!")

    if not assume_yes and not ask_confirmation(f"\nAplicar correção no modo '{mode}'? (S/N): "):
        print("Operação cancelada pelo usuário.")
        return 1

    result = fix_product_stock(store, product.id, mode=mode)
    print_result(check.name, check.unit, result)
    return 0 if result.success else 1


def fix_all(store, mode: str, assume_yes: bool) -> int:
    report = check_all_stocks(store)
    print(f"[OK] Produtos consistentes: {report.consistent}")
    print(f"[ERRO] Produtos inconsistentes: {report.inconsistent}")
    print(f"  Produtos com estoque negativo: {report.negative}")

    if not report.checks_to_fix:
        print()
        print("Todos os produtos estão com estoques consistentes!")
        return 0

    if not assume_yes and not ask_confirmation(f"\nCorrigir todas as inconsistências no modo '{mode}'? (S/N): "):
        print("Operação de correção cancelada pelo usuário.")
        return 1

    fix_report = fix_all_stocks(store, mode=mode)
    names = {c.product_id: (c.name, c.unit) for c in report.checks}
    for result in fix_report.results:
        name, unit = names.get(result.product_id, (str(result.product_id), None))
        print_result(name, unit, result)

    print()
    print("=== RESUMO DA CORREÇÃO ===")
    print(f"Produtos corrigidos: {fix_report.corrected}")
    print(f"Produtos com ajustes para estoque negativo: {fix_report.adjusted}")
    print(f"Falhas na correção: {fix_report.failed}")
    return 0 if fix_report.failed == 0 else 1


def fix_inventory(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Corrige o estoque dos produtos")
    parser.add_argument("--product", help="Código ou nome do produto")
    parser.add_argument("--mode", choices=["auto", "overwrite", "zero"], default="auto")
    parser.add_argument("--yes", action="store_true", help="Não pede confirmação")
    args = parser.parse_args(argv)

    print("=== UTILITÁRIO DE CORREÇÃO DE ESTOQUE ===")
    print()

    stores = get_store()
    store = next(stores)
    try:
        if args.product:
            return fix_single_product(store, args.product, args.mode, args.yes)
        return fix_all(store, args.mode, args.yes)
    except Exception as e:
        print(f"[ERRO] {e}")
        raise
    finally:
        stores.close()


if __name__ == "__main__":
    sys.exit(fix_inventory())
