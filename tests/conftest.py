"""
Shared fixtures: SQLite database, fake Google connector / sender, API client.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("OAUTH_STATE_SECRET", "test-state-secret")
os.environ.setdefault("TOKEN_ENCRYPTION_KEY", "A" * 43 + "=")
os.environ.setdefault("FRONTEND_URL", "https://frontend.test")
os.environ.setdefault("GOOGLE_CLIENT_ID", "client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "client-secret")

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from fastapi import Header
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from api.dependencies import get_connector, get_mail_sender
from api.errors import Unauthorized
from auth.dependencies import get_current_user_id
from connectors import encryption
from connectors.base import BaseConnector
from connectors.credentials import CredentialBundle
from database.session import get_db_session, init_models


def make_bundle(
    access_token: Optional[str] = "access-1",
    refresh_token: Optional[str] = "refresh-1",
    expires_in: int = 3600,
) -> CredentialBundle:
    return CredentialBundle(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        scope="https://www.googleapis.com/auth/gmail.send",
    )


class FakeConnector(BaseConnector):
    """In-process stand-in for Google's OAuth endpoints."""

    def __init__(self, *, drop_state: bool = False) -> None:
        self.drop_state = drop_state
        self.exchange_results: Dict[str, CredentialBundle] = {}
        self.exchange_error: Optional[Exception] = None
        self.refresh_error: Optional[Exception] = None
        self.exchanged: List[str] = []
        self.refreshed: List[CredentialBundle] = []
        self.revoked: List[str] = []

    @property
    def provider_name(self) -> str:
        return "gmail"

    @property
    def scopes(self) -> List[str]:
        return ["https://www.googleapis.com/auth/gmail.send"]

    def get_auth_url(self, state: str) -> str:
        base = "https://accounts.example/auth?client_id=client-id&prompt=consent&access_type=offline"
        return base if self.drop_state else f"{base}&state={state}"

    async def exchange_code(self, code: str) -> CredentialBundle:
        self.exchanged.append(code)
        if self.exchange_error is not None:
            raise self.exchange_error
        return self.exchange_results.get(code) or make_bundle(access_token=f"access-for-{code}")

    async def refresh(self, bundle: CredentialBundle) -> CredentialBundle:
        self.refreshed.append(bundle)
        if self.refresh_error is not None:
            raise self.refresh_error
        return bundle.refreshed({"access_token": "access-refreshed", "expires_in": 3600})

    async def revoke(self, token: str) -> bool:
        self.revoked.append(token)
        return True


class FakeSender:
    """Records raw messages instead of calling Gmail."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, str]] = []
        self.error: Optional[Exception] = None

    async def send(self, access_token: str, raw: str) -> Dict[str, Any]:
        if self.error is not None:
            raise self.error
        self.sent.append({"access_token": access_token, "raw": raw})
        return {"id": f"msg-{len(self.sent)}"}


async def header_user_id(authorization: Optional[str] = Header(None)) -> str:
    """Test identity gate: the bearer token *is* the user id."""
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized(detail="Missing Bearer token")
    return authorization[7:]


def auth(user_id: str = "user-1") -> Dict[str, str]:
    return {"Authorization": f"Bearer {user_id}"}


@pytest.fixture(autouse=True)
def _fresh_cipher():
    encryption.reset()
    yield
    encryption.reset()


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_models(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def app(session_factory, connector, sender):
    from main import app as fastapi_app

    async def _session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    fastapi_app.dependency_overrides[get_db_session] = _session
    fastapi_app.dependency_overrides[get_current_user_id] = header_user_id
    fastapi_app.dependency_overrides[get_connector] = lambda: connector
    fastapi_app.dependency_overrides[get_mail_sender] = lambda: sender
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="https://testserver") as c:
        yield c

