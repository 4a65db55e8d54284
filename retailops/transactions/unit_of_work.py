from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum

from sqlalchemy.orm import Session

from retailops.api.utils import now_utc
from retailops.core.config import Settings, get_settings
from retailops.core.errors import LedgerConsistencyError
from retailops.core.security import Actor
from retailops.domain.customers.directory import CustomerDirectory
from retailops.domain.inventory.catalog import Catalog
from retailops.domain.inventory.ledger import StockLedger
from retailops.domain.inventory.stock import StockChange, VariantStockStore
from retailops.domain.orders.numbering import OrderSequence

logger = logging.getLogger(__name__)


class UnitOfWorkState(str, Enum):
    STARTED = "started"
    VALIDATING = "validating"
    MUTATING = "mutating"
    COMMITTED = "committed"
    ABORTED = "aborted"


_ALLOWED_TRANSITIONS: dict[UnitOfWorkState, frozenset[UnitOfWorkState]] = {
    UnitOfWorkState.STARTED: frozenset(
        {UnitOfWorkState.VALIDATING, UnitOfWorkState.MUTATING, UnitOfWorkState.COMMITTED, UnitOfWorkState.ABORTED}
    ),
    UnitOfWorkState.VALIDATING: frozenset(
        {UnitOfWorkState.MUTATING, UnitOfWorkState.COMMITTED, UnitOfWorkState.ABORTED}
    ),
    UnitOfWorkState.MUTATING: frozenset({UnitOfWorkState.COMMITTED, UnitOfWorkState.ABORTED}),
    UnitOfWorkState.COMMITTED: frozenset(),
    UnitOfWorkState.ABORTED: frozenset(),
}


class UnitOfWork:
    """One atomic scope: every write staged here persists together or not at all.

    Repositories hang off the unit so that stock changes and their ledger
    entries always share one session. Stock changes are tracked until the
    ledger documents them; committing with an undocumented change aborts.
    """

    def __init__(self, session: Session, actor: Actor, settings: Settings | None = None):
        self.session = session
        self.actor = actor
        self.settings = settings or get_settings()
        self.started_at: datetime = now_utc()
        self.state = UnitOfWorkState.STARTED
        self._undocumented: dict[int, StockChange] = {}

        self.catalog = Catalog(self)
        self.stock = VariantStockStore(self)
        self.ledger = StockLedger(self)
        self.customers = CustomerDirectory(self)
        self.sequences = OrderSequence(self)

    def _transition(self, target: UnitOfWorkState) -> None:
        if target == self.state:
            return
        if target not in _ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(f"unit of work cannot move from {self.state.value} to {target.value}")
        self.state = target

    @property
    def is_active(self) -> bool:
        return self.state not in {UnitOfWorkState.COMMITTED, UnitOfWorkState.ABORTED}

    def validating(self) -> None:
        self._transition(UnitOfWorkState.VALIDATING)

    def mutating(self) -> None:
        self._transition(UnitOfWorkState.MUTATING)

    def stage_stock_change(self, change: StockChange) -> None:
        if self.state != UnitOfWorkState.MUTATING:
            raise RuntimeError("stock can only change while the unit of work is mutating")
        self._undocumented[id(change)] = change

    def mark_documented(self, change: StockChange) -> None:
        if self._undocumented.pop(id(change), None) is None:
            raise LedgerConsistencyError(
                f"ledger entry for sku={change.sku} does not match a staged stock change",
                sku=change.sku,
            )

    @property
    def undocumented_changes(self) -> list[StockChange]:
        return list(self._undocumented.values())

    def commit(self) -> None:
        pending = self.undocumented_changes
        if pending:
            skus = sorted({change.sku for change in pending})
            raise LedgerConsistencyError(
                "stock changed without a ledger entry for: " + ", ".join(skus),
                skus=skus,
            )
        self.session.flush()
        self.session.commit()
        self._transition(UnitOfWorkState.COMMITTED)
        logger.debug("unit of work committed: actor=%s", self.actor.id)

    def rollback(self) -> None:
        if self.state == UnitOfWorkState.COMMITTED:
            return
        self.session.rollback()
        self._undocumented.clear()
        if self.state != UnitOfWorkState.STARTED:
            logger.info("unit of work rolled back from state=%s actor=%s", self.state.value, self.actor.id)
        self.state = UnitOfWorkState.ABORTED
