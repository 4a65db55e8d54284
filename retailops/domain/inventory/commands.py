from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from retailops.domain.inventory.status import MovementType


class VariantCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    color: str = Field(min_length=1, max_length=64)
    size: str | None = Field(default=None, max_length=32)
    cost_price: int = Field(ge=0, description="int cents")
    selling_price: int = Field(ge=0, description="int cents")
    market_price: int = Field(ge=0, description="int cents")
    quantity: int = Field(default=0, ge=0)
    reserved: int = Field(default=0, ge=0)
    min_stock_level: int | None = Field(default=None, ge=0, description="falls back to the product threshold")
    reorder_point: int | None = Field(default=None, ge=0)


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    brand: str = Field(min_length=1, max_length=120)
    model: str | None = Field(default=None, max_length=120)
    track_inventory: bool = True
    allow_backorders: bool = False
    low_stock_threshold: int | None = Field(default=None, ge=0, description="falls back to the configured default")
    variants: list[VariantCreate] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_skus(self) -> "ProductCreate":
        skus = [variant.sku for variant in self.variants]
        if len(skus) != len(set(skus)):
            raise ValueError("variant skus must be unique within a product")
        return self


class VariantPriceUpdate(BaseModel):
    cost_price: int | None = Field(default=None, ge=0, description="int cents")
    selling_price: int | None = Field(default=None, ge=0, description="int cents")
    market_price: int | None = Field(default=None, ge=0, description="int cents")


class AdjustInventoryCommand(BaseModel):
    variant_sku: str = Field(min_length=1)
    quantity: int = Field(ge=0, description="units moved, or the counted level for adjustments")
    movement_type: MovementType
    reason: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=500)
    cost_price: int | None = Field(default=None, ge=0, description="int cents, restock only")

    @model_validator(mode="after")
    def _movement_quantity(self) -> "AdjustInventoryCommand":
        if self.movement_type != MovementType.ADJUSTMENT and self.quantity == 0:
            raise ValueError(f"{self.movement_type.value} movements need a positive quantity")
        if self.cost_price is not None and self.movement_type != MovementType.IN:
            raise ValueError("cost_price can only be set on restock (in) movements")
        return self
