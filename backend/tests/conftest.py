import os

# Keep the module-level engine off the developer's real database
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.pop("REMOTE_DATABASE_URL", None)

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gardenbook.database import init_db
from gardenbook.schemas.estimate import ClientInfo, Estimate
from gardenbook.schemas.line_item import LineItem, LineItemCategory, ProjectSection
from gardenbook.services.auth_service import LocalSessionProvider
from gardenbook.services.remote_store import RemoteStore, RemoteStoreError, SqlRemoteStore
from gardenbook.services.storage_service import LocalStore


def memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


class FakeClock:
    """Deterministic clock: each call advances one second."""

    def __init__(self, start=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        self.now = self.now + timedelta(seconds=1)
        return self.now


class FakeRemote(RemoteStore):
    def __init__(self):
        self.rows = {}
        self.calls = []
        self.fail = False
        self.fail_select = False

    def upsert(self, collection, user_id, rows):
        self.calls.append(("upsert", collection))
        if self.fail:
            raise RemoteStoreError("remote unreachable")
        for row in rows:
            self.rows[(collection, row["id"], user_id)] = row

    def delete(self, collection, record_id, user_id):
        self.calls.append(("delete", collection, record_id))
        if self.fail:
            raise RemoteStoreError("remote unreachable")
        self.rows.pop((collection, record_id, user_id), None)

    def select_by_owner(self, collection, user_id):
        self.calls.append(("select", collection))
        if self.fail_select:
            raise RemoteStoreError("remote unreachable")
        return [
            row for (row_collection, _, owner), row in self.rows.items()
            if row_collection == collection and owner == user_id
        ]


@pytest.fixture
def engine():
    engine = memory_engine()
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(engine, clock):
    return LocalStore(
        session_factory=sessionmaker(autocommit=False, autoflush=False, bind=engine),
        clock=clock,
    )


@pytest.fixture
def fake_remote():
    return FakeRemote()


@pytest.fixture
def sql_remote():
    engine = memory_engine()
    remote = SqlRemoteStore(engine=engine)
    remote.create_tables()
    yield remote
    engine.dispose()


@pytest.fixture
def sessions():
    return LocalSessionProvider()


def make_estimate(**fields) -> Estimate:
    """One "Backyard" section: 2 x 25.00 Planting, 1 x 100.00 Labor, 10% tax."""
    values = dict(
        estimate_number="NL-2026-001",
        client=ClientInfo(name="Jane Gardener"),
        tax_rate=Decimal("10"),
        project_sections=[
            ProjectSection(
                name="Backyard",
                plant_material=[
                    LineItem(category=LineItemCategory.PLANTING, description="5 gal Roses",
                             quantity=Decimal("2"), unit_price=Decimal("25.00")),
                ],
                labor_and_services=[
                    LineItem(category=LineItemCategory.LABOR, description="Installation",
                             quantity=Decimal("1"), unit_price=Decimal("100.00")),
                ],
            )
        ],
    )
    values.update(fields)
    return Estimate(**values)


@pytest.fixture
def estimate():
    return make_estimate()
