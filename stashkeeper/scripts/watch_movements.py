"""
Acompanha as movimentações em tempo real pelo canal do Supabase.

Uso:
    python -m stashkeeper.scripts.watch_movements [--product CODIGO_OU_NOME] [--limit 20]
"""
import argparse
import asyncio
import sys
from typing import List, Optional
from supabase import acreate_client
from stashkeeper.config import settings
from stashkeeper.dependencies import get_store
from stashkeeper.schemas.movement import MovementRead
from stashkeeper.services.exceptions import StoreError
from stashkeeper.services.movement_feed import MovementFeedSubscriber
from stashkeeper.services.product_lookup import find_product
from stashkeeper.services.units import format_quantity, full_unit_name


def format_movement(movement: MovementRead) -> str:
    when = movement.created_at.strftime("%d/%m/%Y %H:%M") if movement.created_at else "--"
    quantity = format_quantity(movement.quantity, movement.unit)
    line = f"{when}  {movement.type:<7} {quantity} {full_unit_name(movement.unit)}"
    if movement.notes:
        line += f"  ({movement.notes})"
    return line


def print_movements(movements: List[MovementRead], limit: int = 20) -> None:
    print()
    print(f"=== MOVIMENTAÇÕES ({len(movements)}) ===")
    for movement in movements[:limit]:
        print(format_movement(movement))


async def watch(store, product_id=None, limit: int = 20, stop: Optional[asyncio.Event] = None) -> None:
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise StoreError("Supabase não configurado (SUPABASE_URL / SUPABASE_KEY)")

    client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    subscriber = MovementFeedSubscriber(
        store,
        product_id=product_id,
        on_change=lambda movements: print_movements(movements, limit)
    )
    await subscriber.subscribe(client)
    print_movements(subscriber.visible.items(), limit)

    stop = stop or asyncio.Event()
    try:
        await stop.wait()
    finally:
        await subscriber.unsubscribe()


def watch_movements(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Acompanha as movimentações em tempo real")
    parser.add_argument("--product", help="Código ou nome do produto")
    parser.add_argument("--limit", type=int, default=20, help="Movimentações exibidas")
    args = parser.parse_args(argv)

    stores = get_store()
    store = next(stores)
    try:
        product_id = None
        if args.product:
            product = find_product(store, args.product)
            if product is None:
                print(f"[ERRO] Produto não encontrado: {args.product}")
                return 1
            product_id = product.id
            print(f"Produto: {product.name} ({product.code})")

        asyncio.run(watch(store, product_id, args.limit))
        return 0
    except KeyboardInterrupt:
        print("Encerrado.")
        return 0
    finally:
        stores.close()


if __name__ == "__main__":
    sys.exit(watch_movements())
