from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class FrozenView(BaseModel):
    """Read-only snapshot handed out by the engine."""

    model_config = ConfigDict(frozen=True)
