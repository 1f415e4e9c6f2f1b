"""Shared fixtures: a throwaway SQLite database, users, links and an API client."""

import os

# Settings are read once and cached, so configure them before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./linkpulse-test.db")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LINK_CACHE_ENABLED"] = "false"
os.environ["GEOIP_LOOKUP_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"

from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, func, select

from linkpulse.core.database import Database
from linkpulse.core.redis import CachedLink
from linkpulse.core.security import create_access_token
from linkpulse.main import app
from linkpulse.models import Click, Link, User
from linkpulse.schemas.link import LinkCreate
from linkpulse.services import link as link_service
from linkpulse.services.click_storage import ClickStorageService
from linkpulse.services.geoip import GeoIPService, GeoLocation


class FakeGeoIP:
    """Resolves every address to the same location."""

    def __init__(self, country: str | None = "United States", city: str | None = "New York"):
        self.location = GeoLocation(country=country, city=city)
        self.lookups: list[str | None] = []

    async def lookup(self, ip_address: str | None) -> GeoLocation:
        self.lookups.append(ip_address)
        return self.location if ip_address else GeoLocation()

    def close(self) -> None:
        pass


class FakeLinkCache:
    """In-memory stand-in for the Redis link cache."""

    def __init__(self):
        self.entries: dict[str, CachedLink] = {}
        self.invalidated: list[str] = []

    async def get(self, short_code: str) -> CachedLink | None:
        return self.entries.get(short_code)

    async def set(self, short_code: str, link: CachedLink) -> None:
        self.entries[short_code] = link

    async def invalidate(self, short_code: str) -> None:
        self.invalidated.append(short_code)
        self.entries.pop(short_code, None)

    async def close(self) -> None:
        pass


@pytest.fixture
async def db(tmp_path):
    """A fresh SQLite database file per test."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'linkpulse.db'}")

    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest correctly
    @event.listens_for(database.engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(database.engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    await database.create_all()
    yield database
    await database.close()


@pytest.fixture
async def session(db):
    async with db.session_factory() as session:
        yield session


@pytest.fixture
def click_storage():
    return ClickStorageService(GeoIPService(enabled=False))


@pytest.fixture
def geo_click_storage():
    return ClickStorageService(FakeGeoIP())


@pytest.fixture
def link_cache():
    return FakeLinkCache()


async def create_user(session, email: str, plan: str = "PRO", is_active: bool = True) -> User:
    user = User(email=email, name=email.split("@")[0], plan=plan, is_active=is_active)
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def user(session):
    return await create_user(session, "owner@example.com")


@pytest.fixture
async def other_user(session):
    return await create_user(session, "someone-else@example.com")


@pytest.fixture
def make_link(session, user):
    """Create and commit a link owned by ``user`` unless another owner is given."""

    async def _make_link(owner: User | None = None, **fields) -> Link:
        fields.setdefault("original_url", "https://example.com/landing")
        link = await link_service.create_link(
            session,
            (owner or user).id,
            LinkCreate(**fields),
        )
        await session.commit()
        return link

    return _make_link


@pytest.fixture
def add_click(session):
    """Insert a raw click with explicit attributes."""

    async def _add_click(link: Link, clicked_at: datetime, **fields) -> Click:
        click = Click(link_id=link.id, clicked_at=clicked_at, **fields)
        session.add(click)
        await session.flush()
        return click

    return _add_click


async def count_clicks(session, link_id) -> int:
    result = await session.execute(
        select(func.count(Click.id)).where(Click.link_id == link_id)
    )
    return result.scalar_one()


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


@pytest.fixture
async def client(db, click_storage):
    app.state.db = db
    app.state.link_cache = None
    app.state.click_storage = click_storage
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
