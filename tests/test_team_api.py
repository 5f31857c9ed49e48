"""
Team API tests: owner-only management and the public invitation endpoints.
"""
from sqlmodel import select
from apps.team.models import TeamInvitation


async def test_owner_invites_and_lists(client, owner, session_cookie):
    headers = session_cookie(owner)
    response = await client.post(
        "/api/v1/team/invite", json={"email": "new@acme.test", "role": "agent"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Invitation sent successfully"

    listing = await client.get("/api/v1/team/invitations", headers=headers)
    assert [i["email"] for i in listing.json()["data"]] == ["new@acme.test"]
    assert "token" not in listing.json()["data"][0]


async def test_agent_cannot_manage_team(client, agent, session_cookie):
    headers = session_cookie(agent)
    assert (await client.get("/api/v1/team/members", headers=headers)).status_code == 403
    response = await client.post(
        "/api/v1/team/invite", json={"email": "new@acme.test", "role": "agent"}, headers=headers
    )
    assert response.status_code == 403


async def test_members_lists_own_tenant(client, owner, agent, session_cookie):
    response = await client.get("/api/v1/team/members", headers=session_cookie(owner))
    assert response.status_code == 200
    assert {m["email"] for m in response.json()["data"]} == {"owner@acme.test", "agent@acme.test"}


async def test_invitation_accept_flow(client, async_session, owner, session_cookie):
    await client.post(
        "/api/v1/team/invite", json={"email": "new@acme.test", "role": "agent"}, headers=session_cookie(owner)
    )
    invitation = (await async_session.exec(select(TeamInvitation))).one()
    token = invitation.token

    details = await client.get(f"/api/v1/invite/{token}")
    assert details.status_code == 200
    assert details.json()["data"]["tenant_name"] == "Acme Realty"

    accepted = await client.post(f"/api/v1/invite/{token}/accept", json={"name": "New Agent", "password": "secret1"})
    assert accepted.status_code == 200

    again = await client.post(f"/api/v1/invite/{token}/accept", json={"name": "New Agent", "password": "secret1"})
    assert again.status_code == 410

    login = await client.post("/api/v1/auth/login", json={"email": "new@acme.test", "password": "secret1"})
    assert login.status_code == 200
    assert login.json()["data"]["user"]["role"] == "agent"


async def test_unknown_invitation_token(client):
    assert (await client.get("/api/v1/invite/does-not-exist")).status_code == 404


async def test_accept_rejects_blank_name(client):
    response = await client.post("/api/v1/invite/whatever/accept", json={"name": "   ", "password": "secret1"})
    assert response.status_code == 422


async def test_cancel_invitation(client, owner, session_cookie):
    headers = session_cookie(owner)
    created = await client.post(
        "/api/v1/team/invite", json={"email": "new@acme.test", "role": "agent"}, headers=headers
    )
    invitation_id = created.json()["data"]["invitation_id"]

    assert (await client.delete(f"/api/v1/team/invite/{invitation_id}", headers=headers)).status_code == 200
    assert (await client.delete(f"/api/v1/team/invite/{invitation_id}", headers=headers)).status_code == 404


async def test_accept_rejects_oversized_password(client, async_session, owner, session_cookie):
    await client.post(
        "/api/v1/team/invite", json={"email": "new@acme.test", "role": "agent"}, headers=session_cookie(owner)
    )
    token = (await async_session.exec(select(TeamInvitation))).one().token

    response = await client.post(f"/api/v1/invite/{token}/accept", json={"name": "New Agent", "password": "x" * 5000})
    assert response.status_code == 422
    # Still usable after the rejected attempt
    assert (await client.get(f"/api/v1/invite/{token}")).status_code == 200
