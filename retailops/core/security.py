from __future__ import annotations

from typing import Literal

from fastapi import Header, HTTPException
from pydantic import BaseModel

from retailops.core.config import Settings, get_settings


ActorType = Literal["staff", "manager", "system"]

# Roles allowed to move stock by hand, create products and change prices.
STOCK_MANAGER_TYPES = frozenset({"manager", "system"})


class Actor(BaseModel):
    """Who performed an operation; the id lands on orders, refunds and ledger entries."""

    type: ActorType
    id: str

    @property
    def manages_stock(self) -> bool:
        return self.type in STOCK_MANAGER_TYPES


SYSTEM_ACTOR = Actor(type="system", id="system")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def _presented_key(authorization: str | None, x_api_key: str | None) -> str | None:
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise _unauthorized("invalid authorization header")
        return token.strip()
    if x_api_key and x_api_key.strip():
        return x_api_key.strip()
    return None


def actor_for_key(api_key: str, settings: Settings) -> Actor | None:
    actors = {
        settings.staff_api_key: Actor(type="staff", id=settings.staff_actor_id),
        settings.manager_api_key: Actor(type="manager", id=settings.manager_actor_id),
        settings.system_api_key: Actor(type="system", id=settings.system_actor_id),
    }
    return actors.get(api_key)


def get_actor(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None),
) -> Actor:
    settings = get_settings()
    if not settings.auth_enabled:
        # Local counters run without keys; everything is attributed to the staff id.
        return Actor(type="staff", id=settings.staff_actor_id)

    api_key = _presented_key(authorization, x_api_key)
    if not api_key:
        raise _unauthorized("missing api key")

    actor = actor_for_key(api_key, settings)
    if actor is None:
        raise _unauthorized("invalid api key")
    return actor


def require_stock_manager(actor: Actor, action: str) -> None:
    if not actor.manages_stock:
        raise HTTPException(status_code=403, detail=f"{action} requires a manager or system key")
