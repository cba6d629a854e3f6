"""Route test fixtures — in-memory dossier database behind the FastAPI app.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Requests and readiness probes share one DatabaseSessionManager over that database
    - AI evaluation disabled: no test reaches the Anthropic API

Design Decisions:
    - The real session manager is reused (not a stub), so routes run through
      the same rollback and error mapping as in production
    - seed_client inserts through the ORM so route tests start from a realistic
      dossier without going through the ingestion endpoint
"""

from datetime import date, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

import zorgdossier.infrastructure.database as database
from zorgdossier.db.base import Base
from zorgdossier.main import app
from zorgdossier.models.client import Client
from zorgdossier.models.incident import Incident
from zorgdossier.models.measure import Measure
from zorgdossier.models.note import Note


@pytest.fixture
async def test_manager():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield database.DatabaseSessionManager(engine)
    await engine.dispose()


@pytest.fixture
async def test_db(test_manager):
    async with test_manager.session_factory() as session:
        yield session


@pytest.fixture
async def client(test_manager, monkeypatch):
    """HTTP client against the app; get_db and the readiness probe use test_manager."""
    async def test_get_db():
        async with test_manager.session() as session:
            yield session

    monkeypatch.setattr(database, "db_manager", test_manager)
    app.dependency_overrides[database.get_db] = test_get_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
async def seed_client(test_db):
    """Client C-001 (VV8) with a recent, richly documented dossier."""
    today = date.today()
    client = Client(
        client_id="C-001",
        name="Mevrouw Jansen",
        dob="1938-04-12",
        wlz_profile="VV8",
        provider="Zorggroep Noord",
    )
    test_db.add(client)
    test_db.add_all([
        Note(
            client_id="C-001", date=today - timedelta(days=10),
            author="Verpleegkundige De Vries", section="Observatie",
            text=(
                "Cliënt is 's nachts onrustig en dwaalt. Nachtelijke begeleiding "
                "3x per nacht nodig. Agressie richting medebewoners."
            ),
        ),
        Note(
            client_id="C-001", date=today - timedelta(days=20),
            author="Arts Bakker", section="Zorgplan",
            text=(
                "Doel: valpreventie. Interventie: dagstructuur en 1-op-1 begeleiding. "
                "Zorgbehoefte is structureel en blijvend."
            ),
        ),
        Measure(
            client_id="C-001", date=today - timedelta(days=15),
            type="Katz ADL", score="18", comment="Volledig afhankelijk bij wassen",
        ),
        Incident(
            client_id="C-001", date=today - timedelta(days=5),
            type="Val", severity="Hoog", description="Gevallen in badkamer",
        ),
    ])
    await test_db.commit()
    return client
