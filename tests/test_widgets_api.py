"""
Widget API tests: tenant management and the public, CORS-open config endpoint.
"""
from datetime import timedelta
from framework.clock import utc_now

WIDGET = {"name": "Main site", "greeting_text": "Hi! Looking for a home?", "primary_color": "#1A2B3C"}


async def test_owner_creates_and_lists_widgets(client, owner, session_cookie):
    headers = session_cookie(owner)
    created = await client.post("/api/v1/widgets", json=WIDGET, headers=headers)
    assert created.status_code == 200
    data = created.json()["data"]
    assert data["public_key"]
    assert "tenant_id" not in data

    listing = await client.get("/api/v1/widgets", headers=headers)
    assert [w["name"] for w in listing.json()["data"]] == ["Main site"]


async def test_plan_widget_limit(client, owner, session_cookie):
    headers = session_cookie(owner)
    assert (await client.post("/api/v1/widgets", json=WIDGET, headers=headers)).status_code == 200
    second = await client.post("/api/v1/widgets", json={**WIDGET, "name": "Second"}, headers=headers)
    assert second.status_code == 400


async def test_bad_color_is_rejected(client, owner, session_cookie):
    response = await client.post("/api/v1/widgets", json={**WIDGET, "primary_color": "blue"}, headers=session_cookie(owner))
    assert response.status_code == 422


async def test_agent_reads_but_cannot_write(client, agent, session_cookie):
    headers = session_cookie(agent)
    assert (await client.get("/api/v1/widgets", headers=headers)).status_code == 200
    assert (await client.post("/api/v1/widgets", json=WIDGET, headers=headers)).status_code == 403


async def test_public_config_serves_active_tenant(client, tenant, make_widget):
    widget = await make_widget(tenant, agent_name="Ava")
    response = await client.get("/api/v1/widget-config", params={"key": widget.public_key})

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["cache-control"] == "public, max-age=300"
    data = response.json()["data"]
    assert data["service_paused"] is False
    assert data["config"]["agent_name"] == "Ava"
    assert data["config"]["key"] == widget.public_key
    assert "tenant_id" not in data["config"]


async def test_public_config_pauses_expired_trial(client, make_tenant, make_widget):
    lapsed = await make_tenant("Lapsed Co", trial_ends_at=utc_now() - timedelta(seconds=1))
    widget = await make_widget(lapsed)
    response = await client.get("/api/v1/widget-config", params={"widget_key": widget.public_key})

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "cache-control" not in response.headers
    data = response.json()["data"]
    assert data["service_paused"] is True
    assert "config" not in data


async def test_public_config_serves_paying_tenant_after_trial(client, make_tenant, make_widget):
    paying = await make_tenant("Paying Co", subscription_status="active", trial_ends_at=None)
    widget = await make_widget(paying)
    response = await client.get("/api/v1/widget-config", params={"key": widget.public_key})
    assert response.json()["data"]["service_paused"] is False


async def test_public_config_unknown_or_inactive(client, tenant, make_widget):
    inactive = await make_widget(tenant, is_active=False)

    for key in ("nope", inactive.public_key):
        response = await client.get("/api/v1/widget-config", params={"key": key})
        assert response.status_code == 404
        assert response.headers["access-control-allow-origin"] == "*"


async def test_public_config_requires_key(client):
    response = await client.get("/api/v1/widget-config")
    assert response.status_code == 400
    assert response.headers["access-control-allow-origin"] == "*"


async def test_public_config_preflight(client):
    response = await client.options("/api/v1/widget-config")
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "GET" in response.headers["access-control-allow-methods"]
