from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from landedcost.customs.pipeline import compute_landed_cost
from landedcost.customs.rate_tables import ExemptionEntry, InMemoryRateTables, PortFeeEntry, TariffEntry
from landedcost.db.models import TariffRow
from landedcost.db.repository import SqlRateTables, load_seed
from landedcost.db.session import drop_all, init_db


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False)
    yield factory
    drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def sql_tables(session_factory, tables):
    with session_factory() as session:
        load_seed(session, tables.tariffs, tables.exemptions, tables.port_fees)
        session.commit()
    return SqlRateTables(session_factory)


class TestSqlRateTables:
    def test_load_seed_counts(self, session_factory, tables):
        with session_factory() as session:
            counts = load_seed(session, tables.tariffs, tables.exemptions, tables.port_fees)
            session.commit()
        assert counts == {"tariffs": 4, "exemptions": 1, "port_fees": 1}

    def test_reseeding_upserts(self, session_factory, sql_tables):
        with session_factory() as session:
            load_seed(session, [TariffEntry(code="8471.30.00.00", cumulative_without_tax=9.0)])
            session.commit()
            assert session.query(TariffRow).count() == 4
        assert sql_tables.tariff("8471300000").cumulative_without_tax == 9.0

    def test_lookups_match_in_memory_tables(self, sql_tables, tables):
        for code in ("8471300000", "8471.30.00.00", "870323", "1701990000", "0000000000", ""):
            assert sql_tables.tariff(code) == tables.tariff(code)
        assert sql_tables.exemption("8703231900") == tables.exemption("8703231900")
        assert sql_tables.exemption("8471300000") is None
        assert sql_tables.port_fee("general") == tables.port_fee("general")
        assert sql_tables.port_fee("") is None

    def test_search_by_code_prefers_prefix(self, session_factory):
        with session_factory() as session:
            load_seed(session, [TariffEntry(code="1284710000"), TariffEntry(code="8471300000")])
            session.commit()
        results = SqlRateTables(session_factory).search_tariffs_by_code("8471")
        assert [entry.code for entry in results] == ["8471300000", "1284710000"]

    def test_search_by_description(self, sql_tables):
        results = sql_tables.search_tariffs_by_description("RICE")
        assert [entry.code for entry in results] == ["1006300000"]

    def test_like_wildcards_are_literal(self, sql_tables):
        assert sql_tables.search_tariffs_by_description("%") == []

    def test_exemption_and_port_fee_entries(self, session_factory):
        with session_factory() as session:
            load_seed(
                session,
                exemptions=[ExemptionEntry(code="6403.99.00.00", description="Footwear", exempt=False)],
                port_fees=[PortFeeEntry(category=" bulk ", port_rate_per_tonne=900, municipal_rate_per_tonne=100)],
            )
            session.commit()
        tables = SqlRateTables(session_factory)
        assert tables.exemption("6403990000").exempt is False
        assert tables.port_fee("BULK").municipal_rate_per_tonne == 100

    def test_pipeline_runs_on_sql_tables(self, shipment, lines, settings, sql_tables):
        result = compute_landed_cost(shipment, lines, settings, sql_tables)
        assert result.breakdown.total == 2_280_462

    def test_shared_heading_matches_in_memory_choice(self, session_factory):
        entries = [TariffEntry(code="8471309000"), TariffEntry(code="8471300000")]
        with session_factory() as session:
            load_seed(session, entries)
            session.commit()
        sql_tables = SqlRateTables(session_factory)
        memory_tables = InMemoryRateTables(tariffs=entries)
        assert sql_tables.tariff("847130").code == "8471300000"
        assert memory_tables.tariff("847130").code == "8471300000"
