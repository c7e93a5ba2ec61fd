from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from faaxis_app.database import Base, enable_sqlite_transactions
from faaxis_app.models import records  # noqa: F401
from faaxis_app.models.advisor import AdvisorInfo
from faaxis_app.models.registry import FirmDeal, RegistrySnapshot
from faaxis_app.sample_data import build_sample_registry
from faaxis_app.services.calculator import CompensationCalculator
from faaxis_app.services.registry import InMemoryFirmRegistry


@pytest.fixture
def calculator():
    return CompensationCalculator()


@pytest.fixture
def sample_snapshot() -> RegistrySnapshot:
    return build_sample_registry()


@pytest.fixture
def sample_registry(sample_snapshot) -> InMemoryFirmRegistry:
    return InMemoryFirmRegistry.from_snapshot(sample_snapshot)


@pytest.fixture
def pitch_deal() -> FirmDeal:
    return FirmDeal(
        firm="Morgan Stanley",
        upfront_min=20,
        upfront_max=25,
        backend_min=10,
        backend_max=15,
        total_deal_min=30,
        total_deal_max=40,
    )


@pytest.fixture
def make_advisor():
    def _make(**overrides) -> AdvisorInfo:
        values = dict(
            aum=150_000_000,
            revenue=1_200_000,
            fee_based_percentage=75,
            city="Chicago",
            state="IL",
        )
        values.update(overrides)
        return AdvisorInfo(**values)

    return _make


@pytest.fixture
def sql_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_transactions(engine)
    Base.metadata.create_all(engine)
    with Session(engine, expire_on_commit=False) as session:
        yield session
    engine.dispose()
