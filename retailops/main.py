from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from retailops.api.routes_inventory import router as inventory_router
from retailops.api.routes_orders import router as orders_router
from retailops.api.routes_products import router as products_router
from retailops.api.routes_reports import router as reports_router
from retailops.core.config import get_settings
from retailops.core.errors import RetailOpsError
from retailops.core.logging import configure_logging
from retailops.persistence.database import init_db

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    logger.info("%s ready: env=%s auth_enabled=%s", settings.app_name, settings.env, settings.auth_enabled)


@app.exception_handler(RetailOpsError)
async def retailops_error_handler(_: Request, exc: RetailOpsError):
    if exc.status_code >= 500:
        logger.error("request failed: %s %s", exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "detail": "request body or parameters failed validation",
            "context": {"errors": jsonable_encoder(exc.errors())},
        },
    )


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(orders_router)
app.include_router(inventory_router)
app.include_router(products_router)
app.include_router(reports_router)
