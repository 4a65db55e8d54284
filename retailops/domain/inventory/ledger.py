from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Iterable

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from retailops.core.errors import LedgerConsistencyError, NotFoundError
from retailops.domain.inventory.status import MovementReference, MovementType, expected_new_stock
from retailops.domain.inventory.stock import StockChange
from retailops.persistence.models import StockMovementModel, VariantModel

if TYPE_CHECKING:
    from retailops.transactions.unit_of_work import UnitOfWork


class StockLedger:
    """Append-only movement log. Entries are written, never updated or deleted."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.session = uow.session

    def record(
        self,
        change: StockChange,
        reference: MovementReference,
        reference_id: str | None = None,
        reason: str | None = None,
        notes: str | None = None,
        unit_cost: int = 0,
    ) -> StockMovementModel:
        expected = expected_new_stock(
            change.movement_type,
            change.quantity,
            change.previous_stock,
            change.backordered,
        )
        if expected != change.new_stock:
            raise LedgerConsistencyError(
                f"movement for sku={change.sku} does not reconcile: "
                f"{change.movement_type.value} {change.quantity} from {change.previous_stock} "
                f"cannot yield {change.new_stock}",
                sku=change.sku,
            )

        row = StockMovementModel(
            product_id=change.product_id,
            variant_sku=change.sku,
            movement_type=change.movement_type.value,
            quantity=change.quantity,
            previous_stock=change.previous_stock,
            new_stock=change.new_stock,
            backordered=change.backordered,
            reference=MovementReference(reference).value,
            reference_id=reference_id,
            reason=reason,
            notes=notes,
            unit_cost_cents=unit_cost,
            processed_by=self.uow.actor.id,
            occurred_at=self.uow.started_at,
        )
        self.session.add(row)
        self.session.flush()
        self.uow.mark_documented(change)
        return row


def list_movements(
    session: Session,
    product_id: str | None = None,
    sku: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    movement_types: Iterable[str] | None = None,
    limit: int | None = None,
) -> list[StockMovementModel]:
    stmt: Select[tuple[StockMovementModel]] = select(StockMovementModel).order_by(StockMovementModel.id.asc())
    if product_id is not None:
        stmt = stmt.where(StockMovementModel.product_id == product_id)
    if sku is not None:
        stmt = stmt.where(StockMovementModel.variant_sku == sku)
    if start is not None:
        stmt = stmt.where(StockMovementModel.occurred_at >= start)
    if end is not None:
        stmt = stmt.where(StockMovementModel.occurred_at < end)
    if movement_types:
        stmt = stmt.where(StockMovementModel.movement_type.in_([MovementType(t).value for t in movement_types]))
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(session.scalars(stmt).all())


@dataclass
class ReconciliationReport:
    sku: str
    current_stock: int
    ledger_stock: int | None
    entries: int
    discrepancies: list[str] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return not self.discrepancies

    def to_dict(self) -> dict:
        return {
            "sku": self.sku,
            "current_stock": self.current_stock,
            "ledger_stock": self.ledger_stock,
            "entries": self.entries,
            "consistent": self.consistent,
            "discrepancies": list(self.discrepancies),
        }


def reconcile_variant(session: Session, sku: str) -> ReconciliationReport:
    variant = session.scalar(select(VariantModel).where(VariantModel.sku == sku))
    if variant is None:
        raise NotFoundError(f"Variant not found: {sku}", sku=sku)

    entries = list_movements(session, sku=sku)
    report = ReconciliationReport(
        sku=sku,
        current_stock=variant.quantity,
        ledger_stock=entries[-1].new_stock if entries else None,
        entries=len(entries),
    )

    prev_new: int | None = None
    for entry in entries:
        expected = expected_new_stock(entry.movement_type, entry.quantity, entry.previous_stock, entry.backordered)
        if expected != entry.new_stock:
            report.discrepancies.append(
                f"entry {entry.id}: {entry.movement_type} {entry.quantity} from {entry.previous_stock} "
                f"recorded {entry.new_stock}, expected {expected}"
            )
        if prev_new is not None and entry.previous_stock != prev_new:
            report.discrepancies.append(
                f"entry {entry.id}: previous_stock {entry.previous_stock} does not follow prior new_stock {prev_new}"
            )
        prev_new = entry.new_stock

    if entries and report.ledger_stock != variant.quantity:
        report.discrepancies.append(
            f"counter holds {variant.quantity} but ledger ends at {report.ledger_stock}"
        )
    if not entries and variant.quantity != 0:
        report.discrepancies.append(f"counter holds {variant.quantity} with no ledger history")
    return report
