"""
Utilitário de verificação e recálculo de estoque.
Recalcula o estoque de cada produto a partir das movimentações não excluídas
e, opcionalmente, corrige os produtos inconsistentes ou com histórico negativo.

No modo auto (padrão) um histórico negativo recebe uma entrada de ajuste
em vez de gravar estoque negativo.

Uso:
    python -m stashkeeper.scripts.recalculate_stock [--fix] [--mode auto] [--yes]
"""
import argparse
import sys
from typing import List, Optional
from stashkeeper.dependencies import get_store
from stashkeeper.services.exceptions import StockError
from stashkeeper.services.reconciliation import check_all_stocks, fix_product_stock

YES_ANSWERS = {"s", "sim", "y", "yes"}


def ask_confirmation(question: str) -> bool:
    return input(question).strip().lower() in YES_ANSWERS


def recalculate_stock(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Verifica e recalcula o estoque dos produtos")
    parser.add_argument("--fix", action="store_true", help="Corrige os produtos inconsistentes")
    parser.add_argument("--mode", choices=["auto", "overwrite", "zero"], default="auto")
    parser.add_argument("--yes", action="store_true", help="Não pede confirmação")
    args = parser.parse_args(argv)

    print("=== UTILITÁRIO DE VERIFICAÇÃO E RECÁLCULO DE ESTOQUE ===")
    print()

    stores = get_store()
    store = next(stores)
    try:
        report = check_all_stocks(store)

        print(f"[OK] Produtos consistentes: {report.consistent}")
        print(f"[ERRO] Produtos inconsistentes: {report.inconsistent}")
        print(f"  Produtos com estoque negativo: {report.negative}")

        for check in report.checks:
            if check.error:
                print(f"[ERRO] {check.name or check.product_id}: {check.error}")

        inconsistent = report.checks_to_fix
        if not inconsistent:
            print()
            print("Todos os produtos estão com estoques consistentes!")
            return 0

        print()
        print("Produtos com inconsistências:")
        for check in inconsistent:
            print(f"- {check.name} ({check.code}):")
            print(f"  Estoque atual: {check.current_stock} {check.unit}")
            print(f"  Estoque calculado: {check.calculated_stock} {check.unit}")
            print(f"  Diferença: {check.difference} {check.unit}")
            print(f"  Movimentos: {check.movements}")

        if not args.fix:
            return 1

        if not args.yes and not ask_confirmation("\nDeseja corrigir estas inconsistências? (S/N): "):
            print("Operação de correção cancelada pelo usuário.")
            return 1

        corrected = failed = 0
        for check in inconsistent:
            try:
                result = fix_product_stock(store, check.product_id, mode=args.mode)
            except StockError as e:
                print(f"[ERRO] {check.name}: {e}")
                failed += 1
                continue
            if result.action == "adjustment":
                print(f"[OK] {check.name}: ajuste de +{result.adjustment_quantity} {check.unit}, estoque agora {result.new_stock}")
            else:
                print(f"[OK] {check.name}: {result.previous_stock} -> {result.new_stock} {check.unit}")
            corrected += 1

        print()
        print("=== RESUMO DA CORREÇÃO ===")
        print(f"Produtos corrigidos: {corrected}")
        print(f"Falhas na correção: {failed}")
        return 0 if failed == 0 else 1

    except Exception as e:
        print(f"[ERRO] {e}")
        raise
    finally:
        stores.close()


if __name__ == "__main__":
    sys.exit(recalculate_stock())
