from __future__ import annotations

import pytest
from pydantic import ValidationError

from retailops.core.config import Settings


def test_default_payment_status_accepts_known_statuses():
    assert Settings().default_payment_status == "paid"
    assert Settings(default_payment_status="pending").default_payment_status == "pending"


def test_default_payment_status_rejects_unknown_value():
    with pytest.raises(ValidationError):
        Settings(default_payment_status="payed")


def test_default_payment_status_from_environment(monkeypatch):
    monkeypatch.setenv("RO_DEFAULT_PAYMENT_STATUS", "bogus")
    with pytest.raises(ValidationError):
        Settings()
