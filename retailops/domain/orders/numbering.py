from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite

from retailops.persistence.models import OrderSequenceModel

if TYPE_CHECKING:
    from retailops.transactions.unit_of_work import UnitOfWork

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def order_period(at: datetime) -> str:
    return f"{at.year:04d}{at.month:02d}"


def format_order_number(prefix: str, period: str, value: int, width: int = 4) -> str:
    return f"{prefix}-{period}-{value:0{width}d}"


class OrderSequence:
    """Monotonic per-month counter backing order numbers.

    The increment is a single atomic statement against the counter row, so
    two transactions in the same month can never read the same value.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.session = uow.session

    def next_value(self, period: str) -> int:
        dialect = self.session.get_bind().dialect.name
        insert_fn = _UPSERT_DIALECTS.get(dialect)
        if insert_fn is not None:
            stmt = insert_fn(OrderSequenceModel).values(period=period, last_value=1)
            stmt = stmt.on_conflict_do_update(
                index_elements=[OrderSequenceModel.period],
                set_={"last_value": OrderSequenceModel.last_value + 1},
            )
            self.session.execute(stmt)
        else:
            result = self.session.execute(
                update(OrderSequenceModel)
                .where(OrderSequenceModel.period == period)
                .values(last_value=OrderSequenceModel.last_value + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                # A racing insert surfaces as IntegrityError, which the
                # coordinator retries as a concurrent modification.
                self.session.add(OrderSequenceModel(period=period, last_value=1))
                self.session.flush()
        value = self.session.scalar(
            select(OrderSequenceModel.last_value)
            .where(OrderSequenceModel.period == period)
        )
        return int(value)

    def next_order_number(self, at: datetime | None = None) -> str:
        settings = self.uow.settings
        period = order_period(at or self.uow.started_at)
        return format_order_number(
            settings.order_number_prefix,
            period,
            self.next_value(period),
            settings.order_number_width,
        )
