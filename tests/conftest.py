from __future__ import annotations

import itertools
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import retailops.persistence.database as database
from retailops.core.config import get_settings
from retailops.core.security import Actor
from retailops.engine import TransactionEngine
from retailops.persistence.models import Base
from retailops.transactions import TransactionCoordinator


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    engine = create_engine(
        f"sqlite+pysqlite:///{test_db_path}",
        future=True,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    database.engine = engine
    database.SessionLocal = TestSessionLocal

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables(configure_test_engine):
    yield
    with configure_test_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def session(configure_test_engine):
    with database.session_scope() as s:
        yield s


@pytest.fixture()
def coordinator(configure_test_engine) -> TransactionCoordinator:
    return TransactionCoordinator(backoff_seconds=0)


@pytest.fixture()
def tx_engine(coordinator: TransactionCoordinator) -> TransactionEngine:
    return TransactionEngine(coordinator)


@pytest.fixture()
def staff() -> Actor:
    return Actor(type="staff", id="staff-test")


@pytest.fixture()
def manager() -> Actor:
    return Actor(type="manager", id="manager-test")


@pytest.fixture()
def make_product(tx_engine: TransactionEngine, manager: Actor):
    counter = itertools.count(1)

    def _make(
        quantity: int = 10,
        selling_price: int = 10000,
        cost_price: int = 6000,
        market_price: int = 12000,
        track_inventory: bool = True,
        allow_backorders: bool = False,
        min_stock_level: int | None = None,
        reorder_point: int | None = None,
        name: str | None = None,
    ):
        n = next(counter)
        return tx_engine.create_product(
            {
                "name": name or f"Phone {n}",
                "brand": "Acme",
                "track_inventory": track_inventory,
                "allow_backorders": allow_backorders,
                "variants": [
                    {
                        "sku": f"SKU-{n:03d}",
                        "color": "Black",
                        "size": "128GB",
                        "cost_price": cost_price,
                        "selling_price": selling_price,
                        "market_price": market_price,
                        "quantity": quantity,
                        "min_stock_level": min_stock_level,
                        "reorder_point": reorder_point,
                    }
                ],
            },
            manager,
        )

    return _make


@pytest.fixture()
def walk_in() -> dict:
    return {"name": "Asha Rao", "phone": "+919876543210"}


@pytest.fixture()
def client(configure_test_engine, tx_engine: TransactionEngine):
    from retailops.api.deps import get_engine
    from retailops.main import app

    app.dependency_overrides[get_engine] = lambda: tx_engine
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    settings = get_settings()
    return {
        "staff": {"X-API-Key": settings.staff_api_key},
        "manager": {"X-API-Key": settings.manager_api_key},
        "system": {"Authorization": f"Bearer {settings.system_api_key}"},
    }
