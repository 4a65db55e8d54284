from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class Address(BaseModel):
    name: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    phone: str | None = None


class CustomerRef(BaseModel):
    """Either an existing customer id or the fields for a new walk-in customer."""

    id: str | None = None
    name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, pattern=r"^\+?[1-9]\d{0,15}$")
    email: str | None = Field(default=None, max_length=255)
    address: Address | None = None
    customer_type: Literal["walk-in", "registered", "corporate"] = "walk-in"
    shipping_address: Address | None = None
    billing_address: Address | None = None

    @model_validator(mode="after")
    def _id_or_inline(self) -> "CustomerRef":
        if self.id is None and not (self.name and self.phone):
            raise ValueError("customer needs an id or inline name and phone")
        return self
