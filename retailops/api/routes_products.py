from __future__ import annotations

from fastapi import APIRouter, Depends

from retailops.api.deps import get_engine
from retailops.core.errors import NotFoundError
from retailops.core.security import Actor, get_actor, require_stock_manager
from retailops.domain.inventory.commands import ProductCreate, VariantPriceUpdate
from retailops.domain.inventory.views import ProductView, VariantView
from retailops.engine import TransactionEngine

router = APIRouter(tags=["products"])


@router.post("/products", status_code=201, response_model=ProductView)
def create_product(
    payload: ProductCreate,
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    require_stock_manager(actor, "product creation")
    return engine.create_product(payload, actor)


@router.get("/products/{product_id}", response_model=ProductView)
def get_product(
    product_id: str,
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    return engine.get_product(product_id, actor)


@router.put("/products/{product_id}/variants/{sku}/prices", response_model=VariantView)
def update_variant_prices(
    product_id: str,
    sku: str,
    payload: VariantPriceUpdate,
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    require_stock_manager(actor, "price change")
    product = engine.get_product(product_id, actor)
    if all(variant.sku != sku for variant in product.variants):
        raise NotFoundError(f"Variant {sku} not found for product {product_id}", product_id=product_id, sku=sku)
    return engine.update_variant_prices(sku, payload, actor)
