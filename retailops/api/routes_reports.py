from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from retailops.api.deps import get_engine
from retailops.api.utils import isoformat_z, parse_period
from retailops.core.errors import InputValidationError
from retailops.core.security import Actor, get_actor
from retailops.engine import TransactionEngine

router = APIRouter(tags=["reports"])


@router.get("/reports/sales")
def get_sales_summary(
    period: str = Query(..., description="ISO period: start/end"),
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    try:
        start, end = parse_period(period)
    except ValueError as exc:
        raise InputValidationError(str(exc), period=period) from exc

    return {
        "period": {"start": isoformat_z(start), "end": isoformat_z(end)},
        "summary": engine.sales_summary(start, end, actor),
    }
