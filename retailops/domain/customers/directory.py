from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select

from retailops.core.errors import NotFoundError
from retailops.domain.customers.commands import CustomerRef
from retailops.persistence.models import CustomerModel

if TYPE_CHECKING:
    from retailops.transactions.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

VALUE_TIERS: tuple[tuple[int, str], ...] = (
    (1_000_000, "platinum"),
    (500_000, "gold"),
    (100_000, "silver"),
)


def value_tier(total_spent_cents: int) -> str:
    for threshold, tier in VALUE_TIERS:
        if total_spent_cents >= threshold:
            return tier
    return "bronze"


class CustomerDirectory:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.session = uow.session

    def get(self, customer_id: str) -> CustomerModel:
        customer = self.session.get(CustomerModel, customer_id)
        if customer is None:
            raise NotFoundError(f"Customer not found: {customer_id}", customer_id=customer_id)
        return customer

    def lock_existing(self, customer_id: str) -> CustomerModel:
        stmt = (
            select(CustomerModel)
            .where(CustomerModel.id == customer_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        customer = self.session.scalar(stmt)
        if customer is None:
            raise NotFoundError(f"Customer not found: {customer_id}", customer_id=customer_id)
        return customer

    def create(self, ref: CustomerRef) -> CustomerModel:
        customer = CustomerModel(
            name=ref.name,
            phone=ref.phone,
            email=ref.email.lower() if ref.email else None,
            address=ref.address.model_dump(exclude_none=True) if ref.address else {},
            customer_type=ref.customer_type,
            total_orders=0,
            total_spent_cents=0,
            is_active=True,
            created_at=self.uow.started_at,
        )
        self.session.add(customer)
        self.session.flush()
        logger.info("customer created inline: id=%s type=%s", customer.id, customer.customer_type)
        return customer

    def record_purchase(self, customer: CustomerModel, order_total: int) -> None:
        # In-database increments: concurrent orders for one customer never lose a count.
        customer.total_orders = CustomerModel.total_orders + 1
        customer.total_spent_cents = CustomerModel.total_spent_cents + order_total
        customer.last_purchase_at = self.uow.started_at
        self.session.flush()
