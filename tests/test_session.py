"""
Session manager tests: cookie shape, lookup and the optional revocation store.
"""
from datetime import timedelta
from unittest.mock import AsyncMock
import pytest
from fastapi import Response
from starlette.requests import Request
from framework.clock import utc_now
from framework.config import Settings
from framework.exceptions.handler import UnauthorizedError
from framework.security import IdentityClaims, RedisRevocationStore, SessionManager, TokenService

CLAIMS = IdentityClaims(identity_id=1, email="owner@acme.test", name="Olive", tenant_id=1, role="owner")


def make_request(cookie: str = None) -> Request:
    headers = [(b"cookie", f"session={cookie}".encode())] if cookie else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


@pytest.fixture
def config() -> Settings:
    return Settings(APP_ENV="testing", SECRET_KEY="k")


@pytest.fixture
def manager(config) -> SessionManager:
    return SessionManager(TokenService("k"), config)


def test_start_session_cookie_attributes(manager):
    cookie = manager.start_session(CLAIMS)

    assert cookie.name == "session"
    assert cookie.httponly is True
    assert cookie.samesite == "lax"
    assert cookie.path == "/"
    assert cookie.max_age == 7 * 24 * 3600
    assert cookie.secure is False
    assert not cookie.is_deletion


def test_cookie_is_secure_in_production():
    config = Settings(APP_ENV="production", SECRET_KEY="k")
    cookie = SessionManager(TokenService("k"), config).start_session(CLAIMS)
    assert cookie.secure is True


def test_apply_writes_set_cookie_header(manager):
    response = Response()
    manager.start_session(CLAIMS).apply(response)
    header = response.headers["set-cookie"]
    assert header.startswith("session=")
    assert "HttpOnly" in header
    assert "Max-Age=604800" in header
    assert "SameSite=lax" in header


async def test_current_session_reads_cookie(manager):
    cookie = manager.start_session(CLAIMS)
    session = await manager.current_session(make_request(cookie.value))
    assert session.identity_id == 1
    assert session.tenant_id == 1


async def test_missing_or_invalid_cookie_is_no_session(manager):
    assert await manager.current_session(make_request()) is None
    assert await manager.current_session(make_request("forged.token.value")) is None


async def test_require_session_raises_unauthorized(manager):
    with pytest.raises(UnauthorizedError):
        await manager.require_session(make_request())


async def test_end_session_is_idempotent(manager):
    first = await manager.end_session()
    second = await manager.end_session(None)
    assert first == second
    assert first.is_deletion
    assert first.value == ""

    response = Response()
    first.apply(response)
    assert "Max-Age=0" in response.headers["set-cookie"]


async def test_revocation_store_denies_logged_out_token(config):
    redis = AsyncMock()
    redis.exists.return_value = 0
    store = RedisRevocationStore(redis)
    manager = SessionManager(TokenService("k"), config, revocation_store=store)

    cookie = manager.start_session(CLAIMS)
    session = await manager.current_session(make_request(cookie.value))
    assert session is not None

    await manager.end_session(session)
    key, value = redis.set.await_args.args
    assert key == f"session:revoked:{session.token_id}"
    assert 0 < redis.set.await_args.kwargs["ex"] <= 7 * 24 * 3600

    redis.exists.return_value = 1
    assert await manager.current_session(make_request(cookie.value)) is None


async def test_revoking_an_expired_token_is_a_no_op():
    redis = AsyncMock()
    store = RedisRevocationStore(redis)
    await store.revoke("abc", utc_now() - timedelta(seconds=5))
    redis.set.assert_not_awaited()
