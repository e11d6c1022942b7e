"""End-to-end allocation flow through the HTTP API and PostgreSQL."""

from uuid import uuid4

import pytest
from sqlalchemy import text

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def test_claim_release_flow(client, project, auth_headers):
    proj, folders = project
    alice, bob, carol = uuid4(), uuid4(), uuid4()
    claims = f"/api/v1/projects/{proj.id}/claims"

    first = await client.post(claims, headers=auth_headers(alice))
    second = await client.post(claims, headers=auth_headers(bob))
    full = await client.post(claims, headers=auth_headers(carol))

    assert first.status_code == 201
    assert second.status_code == 201
    assert {first.json()["folder_id"], second.json()["folder_id"]} == {str(f.id) for f in folders}
    assert full.status_code == 409

    again = await client.post(claims, headers=auth_headers(alice))
    assert again.status_code == 200
    assert again.json()["folder_id"] == first.json()["folder_id"]

    released = await client.delete(
        f"/api/v1/projects/{proj.id}/assignment", headers=auth_headers(alice)
    )
    assert released.json()["result"] == "released"

    retry = await client.post(claims, headers=auth_headers(carol))
    assert retry.status_code == 201
    assert retry.json()["folder_id"] == first.json()["folder_id"]


async def test_audit_endpoints(client, project, auth_headers):
    proj, folders = project
    admin = auth_headers(roles=["admin"])
    user_id = uuid4()

    claimed = (
        await client.post(f"/api/v1/projects/{proj.id}/claims", headers=auth_headers(user_id))
    ).json()

    entries = await client.get(
        "/api/v1/audit/entries", params={"project_id": str(proj.id)}, headers=admin
    )
    assert entries.status_code == 200
    [entry] = entries.json()["items"]
    assert entry["outcome"] == "ok"
    assert entry["user_id"] == str(user_id)
    assert entry["actor_id"] == str(user_id)
    assert entry["request_id"]

    holder = await client.get(
        f"/api/v1/audit/folders/{claimed['folder_id']}/holder",
        params={"at": "2999-01-01T00:00:00Z"},
        headers=admin,
    )
    assert holder.json()["user_id"] == str(user_id)


async def test_provision_through_api(client, engine, auth_headers):
    admin = auth_headers(roles=["admin"])
    name = f"Provisioned {uuid4().hex[:8]}"
    number = 900_000 + uuid4().int % 90_000

    try:
        response = await client.post(
            "/api/v1/projects", json={"name": name, "number": number, "capacity": 3}, headers=admin
        )
        assert response.status_code == 201
        project_id = response.json()["id"]

        stats = await client.get(f"/api/v1/projects/{project_id}/stats", headers=admin)
        assert stats.json() == {
            "project_id": project_id,
            "total": 3,
            "available": 3,
            "assigned": 0,
            "utilization_percent": 0.0,
        }

        duplicate = await client.post(
            "/api/v1/projects", json={"name": name, "number": number, "capacity": 3}, headers=admin
        )
        assert duplicate.status_code == 409
    finally:
        async with engine.connect() as conn:
            await conn.execute(
                text(
                    "DELETE FROM public.folders WHERE project_id IN "
                    "(SELECT id FROM public.projects WHERE name = :name)"
                ),
                {"name": name},
            )
            await conn.execute(text("DELETE FROM public.projects WHERE name = :name"), {"name": name})
            await conn.commit()
