"""
Simple test cases to verify test configuration.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import text
from sqlmodel.ext.asyncio.session import AsyncSession
from main import create_app
from framework.config import ConfigurationError, Settings


@pytest.mark.asyncio
async def test_app_exists(client: AsyncClient):
    """Test that app exists."""
    assert client is not None


@pytest.mark.asyncio
async def test_database_session(async_session: AsyncSession):
    """Test that database session works."""
    result = await async_session.execute(text("SELECT 1"))
    assert result.scalar() == 1


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["database"] == "ok"
    assert data["secret_key"] is True
    assert data["billing"] is True


def test_production_requires_secret_key(tmp_path):
    config = Settings(APP_ENV="production", SECRET_KEY=None, LOG_DIR=str(tmp_path))
    with pytest.raises(ConfigurationError):
        create_app(config)


def test_development_falls_back_to_dev_key(tmp_path):
    config = Settings(APP_ENV="development", SECRET_KEY=None, LOG_DIR=str(tmp_path))
    app = create_app(config)
    assert app.state.session_manager is not None


@pytest.mark.asyncio
async def test_trace_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Trace-ID": "trace-123"})
    assert response.headers["x-trace-id"] == "trace-123"


def test_invitation_tokens_are_redacted_from_logged_paths():
    from framework.middleware.logging_md import redact_path
    assert redact_path("/api/v1/invite/abcDEF123/accept") == "/api/v1/invite/***/accept"
    assert redact_path("/api/v1/team/members") == "/api/v1/team/members"
