from __future__ import annotations

import sqlite3
from datetime import timezone
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from faaxis_app.database import Base, enable_sqlite_transactions
from faaxis_app.errors import RegistryUnavailableError
from faaxis_app.models.records import FirmDealRecord, _utcnow
from faaxis_app.models.registry import FirmDeal, FirmParameter
from faaxis_app.sample_data import build_sample_advisor
from faaxis_app.services.calculator import CompensationCalculator
from faaxis_app.services.registry import InMemoryFirmRegistry, SqlFirmRegistry, parameters_for, seed_registry


def test_get_deal_matches_name_or_alias(sample_registry):
    assert sample_registry.get_deal("morgan stanley").firm == "Morgan Stanley"
    assert sample_registry.get_deal("MS").firm == "Morgan Stanley"
    assert sample_registry.get_deal("UBS").firm == "UBS Wealth"
    assert sample_registry.get_deal("Independent").firm == "LPL Financial"


def test_get_deal_for_unknown_firm(sample_registry):
    assert sample_registry.get_deal("Acme Capital Partners") is None
    assert sample_registry.get_deal("") is None


def test_get_parameters_by_alias(sample_registry):
    names = {param.param_name for param in sample_registry.get_parameters("MS")}
    assert {"grid", "dealLength"} <= names
    assert all(param.firm == "Morgan Stanley" for param in sample_registry.get_parameters("MS"))


def test_global_parameters(sample_registry):
    names = {param.param_name for param in sample_registry.get_parameters("Global")}
    assert {"yearsToDisplay", "newGridPayout", "annualGrowthRate"} <= names


def test_add_deal_replaces_existing_firm(sample_registry, pitch_deal):
    count = len(sample_registry.list_deals())
    sample_registry.add_deal(pitch_deal)

    assert len(sample_registry.list_deals()) == count
    assert sample_registry.get_deal("Morgan Stanley").upfront_min == 20


def test_set_parameter_replaces_value():
    registry = InMemoryFirmRegistry()
    registry.set_parameter(FirmParameter(firm="Global", param_name="yearsToDisplay", param_value=10))
    registry.set_parameter(FirmParameter(firm="global", param_name="YearsToDisplay", param_value=7))

    assert [param.param_value for param in registry.list_parameters()] == [7]


def test_deal_ranges_must_be_ordered():
    with pytest.raises(ValidationError):
        FirmDeal(
            firm="Morgan Stanley",
            upfront_min=30,
            upfront_max=20,
            backend_min=0,
            backend_max=0,
            total_deal_min=0,
            total_deal_max=0,
        )


@pytest.mark.parametrize(
    "value, expected",
    [(9, 9.0), ("0.52", 0.52), ("45-50%", 47.5), ("88 - 92 %", 90.0), ("-3", -3.0), ("n/a", None)],
)
def test_parameter_as_float(value, expected):
    assert FirmParameter(firm="Global", param_name="x", param_value=value).as_float() == expected


def test_seed_sql_registry(sql_session, sample_snapshot):
    registry = SqlFirmRegistry(sql_session)

    assert registry.is_empty()
    assert seed_registry(registry, sample_snapshot) == len(sample_snapshot.deals)
    assert seed_registry(registry, sample_snapshot) == 0

    snapshot = registry.snapshot()
    assert [deal.firm for deal in snapshot.deals] == [deal.firm for deal in sample_snapshot.deals]
    assert len(snapshot.parameters) == len(sample_snapshot.parameters)
    assert registry.get_deal("ms").upfront_max == 200


def test_sql_parameters_keep_numbers_and_ranges(sql_session, sample_snapshot):
    registry = SqlFirmRegistry(sql_session)
    seed_registry(registry, sample_snapshot)

    params = {param.param_name: param for param in registry.get_parameters("Morgan Stanley")}
    assert params["grid"].param_value == "50-54%"
    assert params["grid"].as_float() == 52
    assert params["dealLength"].param_value == 9


def test_sql_upserts(sql_session, sample_snapshot, pitch_deal):
    registry = SqlFirmRegistry(sql_session)
    seed_registry(registry, sample_snapshot)

    registry.add_deal(pitch_deal)
    registry.set_parameter(FirmParameter(firm="Global", param_name="yearsToDisplay", param_value=5))

    assert len(registry.list_deals()) == len(sample_snapshot.deals)
    assert registry.get_deal("Morgan Stanley").upfront_min == 20
    years = [param for param in registry.get_parameters("Global") if param.param_name == "yearsToDisplay"]
    assert [param.param_value for param in years] == [5]


def test_sql_and_memory_registries_project_the_same(sql_session, sample_snapshot, sample_registry):
    sql_registry = SqlFirmRegistry(sql_session)
    seed_registry(sql_registry, sample_snapshot)
    calculator = CompensationCalculator()
    advisor = build_sample_advisor()

    from_sql = calculator.run(advisor, sql_registry.snapshot())
    from_memory = calculator.run(advisor, sample_registry.snapshot())

    assert from_sql.model_dump() == from_memory.model_dump()


def test_database_failure_raises_registry_unavailable():
    db = MagicMock()
    db.scalars.side_effect = OperationalError("SELECT firm_deals", {}, Exception("database is locked"))
    registry = SqlFirmRegistry(db)

    with pytest.raises(RegistryUnavailableError) as excinfo:
        registry.snapshot()
    assert isinstance(excinfo.value.__cause__, OperationalError)


def test_failed_write_rolls_back(pitch_deal):
    db = MagicMock()
    db.scalars.return_value = []
    db.commit.side_effect = OperationalError("INSERT", {}, Exception("disk full"))
    registry = SqlFirmRegistry(db)

    with pytest.raises(RegistryUnavailableError):
        registry.add_deal(pitch_deal)
    db.rollback.assert_called_once()


def test_sql_snapshot_ignores_writes_committed_between_reads(tmp_path, sample_snapshot):
    path = tmp_path / "registry.db"
    setup = sqlite3.connect(path)
    setup.execute("PRAGMA journal_mode=WAL")
    setup.close()
    engine = enable_sqlite_transactions(create_engine(f"sqlite:///{path}"))
    Base.metadata.create_all(engine)
    with Session(engine) as db:
        seed_registry(SqlFirmRegistry(db), sample_snapshot)

    reader = Session(engine)
    writer = Session(engine)
    registry = SqlFirmRegistry(reader)
    read_deals = registry.list_deals

    def read_deals_then_cms_write():
        deals = read_deals()
        SqlFirmRegistry(writer).set_parameter(FirmParameter(firm="Morgan Stanley", param_name="grid", param_value="70%"))
        return deals

    registry.list_deals = read_deals_then_cms_write
    try:
        snapshot = registry.snapshot()
        grid = [param.param_value for param in parameters_for(snapshot.parameters, "Morgan Stanley") if param.param_name == "grid"]
        assert grid == ["50-54%"]
    finally:
        reader.close()
        writer.close()
        engine.dispose()

    with Session(engine) as db:
        assert SqlFirmRegistry(db).get_parameters("Morgan Stanley")[0].param_value == "70%"


def test_records_are_timestamped(sql_session, pitch_deal):
    SqlFirmRegistry(sql_session).add_deal(pitch_deal)

    record = sql_session.scalars(select(FirmDealRecord)).one()
    assert record.updated_at is not None
    assert _utcnow().tzinfo is timezone.utc
