from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from retailops.core.errors import InputValidationError, NotFoundError
from retailops.core.security import SYSTEM_ACTOR, Actor
from retailops.domain.customers.directory import value_tier
from retailops.domain.inventory.adjustments import adjust_inventory
from retailops.domain.inventory.commands import AdjustInventoryCommand, ProductCreate, VariantPriceUpdate
from retailops.domain.inventory.ledger import ReconciliationReport, list_movements, reconcile_variant
from retailops.domain.inventory.reports import inventory_alerts, inventory_summary
from retailops.domain.inventory.views import MovementResult, MovementView, ProductView, VariantView
from retailops.domain.orders.aggregates import OrderAggregate
from retailops.domain.orders.assembler import OrderAssembler
from retailops.domain.orders.commands import CreateOrderCommand, ProcessRefundCommand, UpdateOrderStatusCommand
from retailops.domain.orders.refunds import RefundProcessor, load_order_for_update
from retailops.domain.orders.reports import sales_summary
from retailops.domain.orders.views import OrderView, RefundResult
from retailops.persistence.models import OrderModel
from retailops.transactions import TransactionCoordinator, UnitOfWork

M = TypeVar("M", bound=BaseModel)


def coerce_command(model: type[M], value: M | dict[str, Any]) -> M:
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except PydanticValidationError as exc:
        fields = sorted({".".join(str(part) for part in error["loc"]) or "<root>" for error in exc.errors()})
        raise InputValidationError(
            f"invalid {model.__name__}: {exc.error_count()} error(s) in {', '.join(fields)}",
            fields=fields,
        ) from exc


class TransactionEngine:
    """Entry point for every operation the transaction engine exposes.

    Mutating operations run through the coordinator, which retries bounded
    times on concurrent modification; reads use a plain unit of work.
    Results are frozen views built before the unit of work closes.
    """

    def __init__(self, coordinator: TransactionCoordinator | None = None):
        self.coordinator = coordinator or TransactionCoordinator()

    # Orders

    def create_order(self, command: CreateOrderCommand | dict, actor: Actor) -> OrderView:
        command = coerce_command(CreateOrderCommand, command)

        def work(uow: UnitOfWork) -> OrderView:
            return OrderView.from_model(OrderAssembler(uow).assemble(command))

        return self.coordinator.run("create_order", actor, work)

    def get_order(self, order_id: str, actor: Actor = SYSTEM_ACTOR) -> OrderView:
        with self.coordinator.unit_of_work(actor) as uow:
            order = uow.session.get(OrderModel, order_id)
            if order is None:
                raise NotFoundError(f"Order not found: {order_id}", order_id=order_id)
            return OrderView.from_model(order)

    def process_refund(self, order_id: str, command: ProcessRefundCommand | dict, actor: Actor) -> RefundResult:
        command = coerce_command(ProcessRefundCommand, command)

        def work(uow: UnitOfWork) -> RefundResult:
            return RefundProcessor(uow).process(order_id, command)

        return self.coordinator.run("process_refund", actor, work)

    def update_order_status(
        self,
        order_id: str,
        command: UpdateOrderStatusCommand | dict,
        actor: Actor,
    ) -> OrderView:
        command = coerce_command(UpdateOrderStatusCommand, command)

        def work(uow: UnitOfWork) -> OrderView:
            uow.validating()
            order = load_order_for_update(uow, order_id)
            uow.mutating()
            OrderAggregate(order).change_status(command.order_status, command.notes, uow.started_at)
            uow.session.flush()
            return OrderView.from_model(order)

        return self.coordinator.run("update_order_status", actor, work)

    def sales_summary(self, start: datetime, end: datetime, actor: Actor = SYSTEM_ACTOR) -> dict[str, int]:
        with self.coordinator.unit_of_work(actor) as uow:
            return sales_summary(uow.session, start, end)

    # Inventory

    def adjust_inventory(self, command: AdjustInventoryCommand | dict, actor: Actor) -> MovementResult:
        command = coerce_command(AdjustInventoryCommand, command)
        return self.coordinator.run("adjust_inventory", actor, lambda uow: adjust_inventory(uow, command))

    def list_movements(
        self,
        product_id: str | None = None,
        sku: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        movement_types: Iterable[str] | None = None,
        limit: int | None = None,
        actor: Actor = SYSTEM_ACTOR,
    ) -> list[MovementView]:
        with self.coordinator.unit_of_work(actor) as uow:
            rows = list_movements(
                uow.session,
                product_id=product_id,
                sku=sku,
                start=start,
                end=end,
                movement_types=movement_types,
                limit=limit,
            )
            return [MovementView.from_model(row) for row in rows]

    def reconcile_variant(self, sku: str, actor: Actor = SYSTEM_ACTOR) -> ReconciliationReport:
        with self.coordinator.unit_of_work(actor) as uow:
            return reconcile_variant(uow.session, sku)

    def inventory_alerts(self, actor: Actor = SYSTEM_ACTOR) -> dict[str, list[dict]]:
        with self.coordinator.unit_of_work(actor) as uow:
            return inventory_alerts(uow.session, min_suggested_reorder=uow.settings.min_suggested_reorder)

    def inventory_summary(self, actor: Actor = SYSTEM_ACTOR) -> dict[str, int]:
        with self.coordinator.unit_of_work(actor) as uow:
            return inventory_summary(uow.session)

    # Catalog

    def create_product(self, command: ProductCreate | dict, actor: Actor) -> ProductView:
        command = coerce_command(ProductCreate, command)

        def work(uow: UnitOfWork) -> ProductView:
            return ProductView.from_model(uow.catalog.create_product(command))

        return self.coordinator.run("create_product", actor, work)

    def get_product(self, product_id: str, actor: Actor = SYSTEM_ACTOR) -> ProductView:
        with self.coordinator.unit_of_work(actor) as uow:
            return ProductView.from_model(uow.catalog.get_product(product_id))

    def update_variant_prices(self, sku: str, update: VariantPriceUpdate | dict, actor: Actor) -> VariantView:
        update = coerce_command(VariantPriceUpdate, update)

        def work(uow: UnitOfWork) -> VariantView:
            return VariantView.from_model(uow.catalog.update_variant_prices(sku, update))

        return self.coordinator.run("update_variant_prices", actor, work)

    # Customers

    def get_customer(self, customer_id: str, actor: Actor = SYSTEM_ACTOR) -> dict[str, Any]:
        with self.coordinator.unit_of_work(actor) as uow:
            customer = uow.customers.get(customer_id)
            return {
                "id": customer.id,
                "name": customer.name,
                "phone": customer.phone,
                "email": customer.email,
                "customer_type": customer.customer_type,
                "total_orders": customer.total_orders,
                "total_spent": customer.total_spent_cents,
                "last_purchase_at": customer.last_purchase_at,
                "value_tier": value_tier(customer.total_spent_cents),
                "returning": customer.total_orders > 1,
            }
