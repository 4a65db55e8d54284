from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from retailops.persistence.models import OrderModel

SUMMARY_PAYMENT_STATUSES = ("paid", "partially-refunded")


def sales_summary(session: Session, start: datetime, end: datetime) -> dict[str, int]:
    rows = list(
        session.scalars(
            select(OrderModel)
            .where(OrderModel.created_at >= start)
            .where(OrderModel.created_at < end)
            .where(OrderModel.order_status != "cancelled")
            .where(OrderModel.payment_status.in_(SUMMARY_PAYMENT_STATUSES))
        ).all()
    )
    total_revenue = sum(order.total_cents for order in rows)
    total_refunds = sum(order.refunded_cents for order in rows)
    return {
        "total_orders": len(rows),
        "total_revenue": total_revenue,
        "total_refunds": total_refunds,
        "net_revenue": total_revenue - total_refunds,
        "average_order_value": total_revenue // len(rows) if rows else 0,
    }
