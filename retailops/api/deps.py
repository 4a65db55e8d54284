from __future__ import annotations

from functools import lru_cache

from retailops.engine import TransactionEngine


@lru_cache(maxsize=1)
def get_engine() -> TransactionEngine:
    return TransactionEngine()
