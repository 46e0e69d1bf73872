"""
Test configuration: a throwaway SQLite database per test, mock senders
and an HTTP client bound to the app.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./teamledger-test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from teamledger import models  # noqa: F401
from teamledger.core.security import create_access_token
from teamledger.database import get_session
from teamledger.main import app
from teamledger.models import User, Business, Cashbook, CashbookMember
from teamledger.services.email_service import MockEmailService, set_email_service
from teamledger.services.sms_service import MockSMSService, set_sms_service


@pytest.fixture
async def engine(tmp_path):
    """Fresh database file for each test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def senders():
    """Record outgoing invites instead of sending them."""
    email = MockEmailService()
    sms = MockSMSService()
    set_email_service(email)
    set_sms_service(sms)
    yield SimpleNamespace(email=email, sms=sms)
    set_email_service(None)
    set_sms_service(None)


@pytest.fixture
async def team(session_factory):
    """
    Corner Shop, owned by owner.

    - "Main till" is owned by owner and has member staff_a
    - "Market stall" is owned by partner and has member staff_b
    - outsider and newcomer exist but have no relation to the business

    Returns plain ids so tests never hold ORM objects across sessions.
    """
    async with session_factory() as session:
        users = {
            "owner": User(full_name="Olivia Owner", email="olivia@example.com"),
            "staff_a": User(full_name="Sam Staff", email="sam@example.com"),
            "partner": User(full_name="Paula Partner", email="paula@example.com"),
            "staff_b": User(full_name="Tom Till", phone="+254700000004"),
            "outsider": User(full_name="Oscar Outsider", email="oscar@example.com"),
            "newcomer": User(full_name="Nina New", email="nina@example.com"),
        }
        session.add_all(users.values())

        business = Business(name="Corner Shop", owner_id=users["owner"].id)
        main_till = Cashbook(name="Main till", owner_id=users["owner"].id, business_id=business.id)
        market = Cashbook(name="Market stall", owner_id=users["partner"].id, business_id=business.id)
        session.add_all([business, main_till, market])
        session.add_all([
            CashbookMember(cashbook_id=main_till.id, user_id=users["staff_a"].id),
            CashbookMember(cashbook_id=market.id, user_id=users["staff_b"].id),
        ])
        await session.commit()

        ids = {name: user.id for name, user in users.items()}
        return SimpleNamespace(
            business=business.id,
            main_till=main_till.id,
            market=market.id,
            **ids
        )


@pytest.fixture
async def client(session_factory):
    """HTTP client against the app, using the test database."""
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(user_id) -> dict:
    """Bearer header for a user, as the auth service would issue it."""
    token = create_access_token({"user_id": str(user_id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth():
    return auth_headers
