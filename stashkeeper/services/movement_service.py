"""
Movimentações de estoque: registro, edição e exclusão com compensação automática.

A quantidade do produto só muda por aqui. Cada operação lê o estado atual,
calcula o resultado com as funções puras de ledger.py e grava:
- em stores atômicos (SQL) todas as escritas entram numa única transação
- em stores sem transação (Supabase) a escrita já aplicada é revertida
  manualmente quando a seguinte falha, e a falha vira PartialFailure
"""
import logging
from decimal import Decimal
from typing import Any, Callable, Optional, Tuple
from uuid import UUID
from stashkeeper.config import settings
from stashkeeper.schemas.movement import DeletionResult, MovementRead
from stashkeeper.services.exceptions import (
    AlreadyDeleted,
    InsufficientStock,
    InvalidUnit,
    PartialFailure,
    StockError,
)
from stashkeeper.services.ledger import (
    ENTRADA,
    SAIDA,
    compensation_note,
    plan_deletion,
    sign,
    signed_quantity,
    tolerance_note,
)
from stashkeeper.services.stock_validation import ensure_stock
from stashkeeper.services.store import StockStore
from stashkeeper.services.units import (
    Number,
    are_compatible,
    convert,
    normalize_unit,
    round_quantity,
    to_decimal,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.000")


class MovementService:
    def __init__(self, store: StockStore):
        self.store = store

    def _best_effort(self, description: str, action: Callable[[], Any]) -> bool:
        """Executa uma escrita de reversão; devolve False se ela também falhar"""
        try:
            action()
            return True
        except StockError as e:
            logger.error(f"Rollback failed ({description}): {e}")
            return False

    def _clamp(self, quantity: Decimal) -> Tuple[Decimal, Optional[Decimal]]:
        """
        Resultado negativo dentro da tolerância vira zero e a diferença volta
        como entrada de ajuste (segundo item). Fora da tolerância, erro.
        """
        if quantity >= 0:
            return quantity, None
        if quantity >= -Decimal(str(settings.STOCK_TOLERANCE)):
            logger.debug(f"Clamping {quantity} to zero (within tolerance)")
            return ZERO, abs(quantity)
        raise InsufficientStock("Quantidade não pode ser maior que o estoque disponível")

    def _insert_tolerance_adjustment(self, product, quantity: Decimal, movement_id: UUID) -> MovementRead:
        logger.info(f"Tolerance adjustment of +{quantity} {product.unit} for movement {movement_id}")
        return self.store.insert_movement({
            "product_id": product.id,
            "type": ENTRADA,
            "quantity": quantity,
            "unit": product.unit,
            "notes": tolerance_note(movement_id),
        })

    def register_movement(
        self,
        product_id: UUID,
        movement_type: str,
        quantity: Number,
        unit: Optional[str] = None,
        notes: Optional[str] = None
    ) -> MovementRead:
        """
        Registra uma entrada ou saída e atualiza o estoque do produto.

        Saídas passam por ensure_stock antes de qualquer escrita.

        Raises:
            NotFound: produto inexistente
            InvalidUnit: unidade de outra dimensão
            InsufficientStock: saída maior que o estoque
        """
        qty = to_decimal(quantity)
        if qty <= 0:
            raise ValueError("A quantidade deve ser maior que zero")
        direction = sign(movement_type)

        product = self.store.read_product(product_id)
        movement_unit = unit or product.unit

        if movement_type == SAIDA:
            ensure_stock(product.quantity, qty, movement_unit, product.unit)
        elif not are_compatible(movement_unit, product.unit):
            raise InvalidUnit(
                f"Unidades incompatíveis: {normalize_unit(product.unit)} e {normalize_unit(movement_unit)}"
            )

        delta = direction * convert(qty, movement_unit, product.unit)
        new_quantity, shortfall = self._clamp(round_quantity(to_decimal(product.quantity) + delta))

        with self.store.transaction():
            movement = self.store.insert_movement({
                "product_id": product.id,
                "type": movement_type,
                "quantity": qty,
                "unit": movement_unit,
                "notes": notes,
            })
            inserted = [movement.id]
            try:
                if shortfall is not None:
                    adjustment = self._insert_tolerance_adjustment(product, shortfall, movement.id)
                    inserted.append(adjustment.id)
                self.store.write_product(product.id, new_quantity)
            except StockError as e:
                if self.store.atomic:
                    raise
                results = [
                    self._best_effort(
                        f"soft-delete inserted movement {movement_id}",
                        lambda movement_id=movement_id: self.store.update_movement(movement_id, deleted=True)
                    )
                    for movement_id in inserted
                ]
                raise PartialFailure(
                    f"Movimentação registrada mas o estoque não foi atualizado: {e}",
                    rollback_succeeded=all(results)
                ) from e

        logger.info(
            f"Movement {movement.id} registered: {movement_type} {qty} {movement_unit} "
            f"(product {product.id}: {product.quantity} -> {new_quantity})"
        )
        return movement

    def update_movement(
        self,
        movement_id: UUID,
        movement_type: Optional[str] = None,
        quantity: Optional[Number] = None,
        unit: Optional[str] = None,
        notes: Optional[str] = None
    ) -> MovementRead:
        """
        Edita uma movimentação: desfaz o efeito antigo e aplica o novo.

        Raises:
            AlreadyDeleted: movimentação excluída não pode ser editada
            InsufficientStock: o novo efeito deixaria o estoque negativo
        """
        movement = self.store.read_movement(movement_id)
        if movement.deleted:
            raise AlreadyDeleted(f"Movimentação {movement_id} já foi excluída")

        product = self.store.read_product(movement.product_id)

        new_type = movement_type or movement.type
        new_qty = to_decimal(quantity) if quantity is not None else to_decimal(movement.quantity)
        new_unit = unit or movement.unit or product.unit
        if new_qty <= 0:
            raise ValueError("A quantidade deve ser maior que zero")
        if not are_compatible(new_unit, product.unit):
            raise InvalidUnit(
                f"Unidades incompatíveis: {normalize_unit(product.unit)} e {normalize_unit(new_unit)}"
            )

        old_effect = signed_quantity(movement, product.unit)
        new_effect = sign(new_type) * convert(new_qty, new_unit, product.unit)
        new_quantity, shortfall = self._clamp(
            round_quantity(to_decimal(product.quantity) - old_effect + new_effect)
        )

        fields = {"type": new_type, "quantity": new_qty, "unit": new_unit}
        if notes is not None:
            fields["notes"] = notes
        previous = {k: getattr(movement, k) for k in fields}

        with self.store.transaction():
            updated = self.store.update_movement(movement.id, **fields)
            adjustment = None
            try:
                if shortfall is not None:
                    adjustment = self._insert_tolerance_adjustment(product, shortfall, movement.id)
                self.store.write_product(product.id, new_quantity)
            except StockError as e:
                if self.store.atomic:
                    raise
                rolled_back = self._best_effort(
                    "restore movement fields",
                    lambda: self.store.update_movement(movement.id, **previous)
                )
                if adjustment is not None:
                    rolled_back = self._best_effort(
                        "soft-delete tolerance adjustment",
                        lambda: self.store.update_movement(adjustment.id, deleted=True)
                    ) and rolled_back
                raise PartialFailure(
                    f"Movimentação alterada mas o estoque não foi atualizado: {e}",
                    rollback_succeeded=rolled_back
                ) from e

        logger.info(
            f"Movement {movement.id} updated (product {product.id}: "
            f"{product.quantity} -> {new_quantity})"
        )
        return updated

    def delete_movement(self, movement_id: UUID) -> DeletionResult:
        """
        Exclusão lógica de uma movimentação com ajuste do estoque.

        ACTIVE -> DELETING -> DELETED | COMPENSATED_DELETED

        1. Movimentação já excluída: no-op (não ajusta o estoque duas vezes)
        2. Lê a quantidade atual do produto
        3-4. Desfaz o efeito da movimentação (ledger.plan_deletion)
        5. Entrada cuja reversão deixaria o estoque negativo: registra uma
           entrada de compensação com a diferença e zera o estoque
        6. Grava a nova quantidade do produto
        7. Marca a movimentação como excluída
        8. Sem transação: se 6 ou 7 falhar depois de outra escrita aplicada,
           tenta reverter e levanta PartialFailure

        Returns:
            DeletionResult com o estado final
        """
        movement = self.store.read_movement(movement_id)

        if movement.deleted:
            logger.info(f"Movement {movement_id} already deleted, nothing to do")
            return DeletionResult(
                movement_id=movement.id,
                state="ALREADY_DELETED",
                product_id=movement.product_id,
            )

        product = self.store.read_product(movement.product_id)
        plan = plan_deletion(movement, product.quantity, product.unit)

        logger.info(
            f"Deleting movement {movement.id} ({movement.type} {movement.quantity}): "
            f"product {product.id} {plan.previous_quantity} -> {plan.new_quantity}"
        )

        compensation = None
        with self.store.transaction():
            if plan.needs_compensation:
                logger.warning(
                    f"Deleting movement {movement.id} would leave product {product.id} negative, "
                    f"registering compensation of {plan.compensation_quantity}"
                )
                compensation = self.store.insert_movement({
                    "product_id": product.id,
                    "type": ENTRADA,
                    "quantity": plan.compensation_quantity,
                    "unit": product.unit,
                    "notes": compensation_note(movement.id),
                    "compensates_movement_id": movement.id,
                })

            try:
                self.store.write_product(product.id, plan.new_quantity)
            except StockError as e:
                if self.store.atomic or compensation is None:
                    raise
                rolled_back = self._best_effort(
                    "soft-delete compensation",
                    lambda: self.store.update_movement(compensation.id, deleted=True)
                )
                raise PartialFailure(
                    f"Compensação registrada mas o estoque não foi atualizado: {e}",
                    rollback_succeeded=rolled_back
                ) from e

            try:
                self.store.update_movement(movement.id, deleted=True)
            except StockError as e:
                if self.store.atomic:
                    raise
                rolled_back = self._best_effort(
                    "restore product quantity",
                    lambda: self.store.write_product(product.id, plan.previous_quantity)
                )
                if compensation is not None:
                    rolled_back = self._best_effort(
                        "soft-delete compensation",
                        lambda: self.store.update_movement(compensation.id, deleted=True)
                    ) and rolled_back
                raise PartialFailure(
                    f"Não foi possível excluir a movimentação: {e}",
                    rollback_succeeded=rolled_back
                ) from e

        state = "COMPENSATED_DELETED" if compensation is not None else "DELETED"
        logger.info(f"Movement {movement.id} deleted ({state})")

        return DeletionResult(
            movement_id=movement.id,
            state=state,
            product_id=product.id,
            previous_quantity=plan.previous_quantity,
            new_quantity=plan.new_quantity,
            compensation=compensation,
        )
