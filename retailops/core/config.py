from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from retailops.domain.orders.commands import PaymentStatus

DEFAULT_STAFF_API_KEY = "ro-staff-dev-key"
DEFAULT_MANAGER_API_KEY = "ro-manager-dev-key"
DEFAULT_SYSTEM_API_KEY = "ro-system-dev-key"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="RO_", extra="ignore")

    app_name: str = "RetailOps Transaction Engine"
    env: str = "dev"
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./retailops.db"

    # Order policy inputs
    tax_rate: Decimal = Field(default=Decimal("0.10"), ge=0, le=1, description="fraction of subtotal")
    order_number_prefix: str = "ORD"
    order_number_width: int = Field(default=4, ge=1, le=12)
    default_payment_status: PaymentStatus = "paid"

    # Inventory defaults
    default_min_stock_level: int = Field(default=5, ge=0)
    default_reorder_point: int = Field(default=10, ge=0)
    min_suggested_reorder: int = Field(default=20, ge=0)

    # Unit-of-work conflict handling
    max_conflict_retries: int = Field(default=3, ge=0, le=20)
    conflict_backoff_seconds: float = Field(default=0.05, ge=0)

    auth_enabled: bool = True
    staff_api_key: str = DEFAULT_STAFF_API_KEY
    manager_api_key: str = DEFAULT_MANAGER_API_KEY
    system_api_key: str = DEFAULT_SYSTEM_API_KEY
    staff_actor_id: str = "staff-001"
    manager_actor_id: str = "manager-001"
    system_actor_id: str = "system-001"

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return

        insecure_items: list[str] = []
        if self.staff_api_key == DEFAULT_STAFF_API_KEY:
            insecure_items.append("RO_STAFF_API_KEY")
        if self.manager_api_key == DEFAULT_MANAGER_API_KEY:
            insecure_items.append("RO_MANAGER_API_KEY")
        if self.system_api_key == DEFAULT_SYSTEM_API_KEY:
            insecure_items.append("RO_SYSTEM_API_KEY")

        if insecure_items:
            raise ValueError(
                "insecure default api keys are not allowed outside dev mode; set env vars: "
                + ", ".join(sorted(insecure_items))
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
