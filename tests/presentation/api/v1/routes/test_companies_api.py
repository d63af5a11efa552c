"""Test company API endpoints"""

import pytest
from fastapi import status

from bizmanager.application.services.catalog_seed_service import \
    CATALOG_PERMISSIONS


@pytest.fixture
async def acme_via_api(client, seeded_catalog, owner, auth_headers_for):
    response = await client.post(
        "/companies",
        json={"name": "Acme", "email": "contact@acme.test", "identifier": "acme"},
        headers=auth_headers_for(owner.id),
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


@pytest.mark.asyncio
async def test_create_company_provisions_admin(client, acme_via_api, owner, auth_headers_for):
    """Test company creation returns the decrypted company and the ADMIN grant"""
    assert acme_via_api["company"]["name"] == "Acme"
    assert acme_via_api["company"]["email"] == "contact@acme.test"
    assert len(acme_via_api["permission_ids"]) == len(CATALOG_PERMISSIONS)

    response = await client.get(
        f"/rbac/roles/company/{acme_via_api['company']['id']}",
        headers=auth_headers_for(owner.id),
    )

    assert response.status_code == status.HTTP_200_OK
    assert [r["name"] for r in response.json()] == ["ADMIN"]


@pytest.mark.asyncio
async def test_create_company_unauthorized(client, seeded_catalog):
    """Test company creation without authentication"""
    response = await client.post("/companies", json={"name": "Acme"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["kind"] == "unauthenticated"


@pytest.mark.asyncio
async def test_invalid_token_rejected(client, seeded_catalog):
    """Test a malformed bearer token is rejected"""
    response = await client.get("/companies", headers={"Authorization": "Bearer nonsense"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_create_company_duplicate_name(client, acme_via_api, owner, auth_headers_for):
    """Test the same owner cannot create two companies with one name"""
    response = await client.post(
        "/companies", json={"name": "ACME"}, headers=auth_headers_for(owner.id)
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"] == "CONFLICT"


@pytest.mark.asyncio
async def test_create_company_invalid_body(client, seeded_catalog, owner, auth_headers_for):
    """Test request validation rejects a malformed email"""
    response = await client.post(
        "/companies",
        json={"name": "Acme", "email": "not-an-email"},
        headers=auth_headers_for(owner.id),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_outsider_cannot_read_company(client, acme_via_api, outsider, auth_headers_for):
    """Test a non-member is forbidden from company reads"""
    response = await client.get(
        f"/companies/{acme_via_api['company']['id']}", headers=auth_headers_for(outsider.id)
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["kind"] == "forbidden"


@pytest.mark.asyncio
async def test_list_companies(client, acme_via_api, owner, outsider, auth_headers_for):
    """Test listing shows only the caller's companies"""
    own = await client.get("/companies", headers=auth_headers_for(owner.id))
    foreign = await client.get("/companies", headers=auth_headers_for(outsider.id))

    assert [c["name"] for c in own.json()] == ["Acme"]
    assert foreign.json() == []


@pytest.mark.asyncio
async def test_update_company(client, acme_via_api, owner, auth_headers_for):
    """Test partial update changes only the fields sent"""
    company_id = acme_via_api["company"]["id"]

    response = await client.patch(
        f"/companies/{company_id}",
        json={"phone": "+1-555-0199"},
        headers=auth_headers_for(owner.id),
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["phone"] == "+1-555-0199"
    assert data["email"] == "contact@acme.test"
    assert data["name"] == "Acme"


@pytest.mark.asyncio
async def test_delete_company(client, acme_via_api, owner, auth_headers_for):
    """Test deletion reports counts and the company's roles are gone afterwards"""
    company_id = acme_via_api["company"]["id"]
    headers = auth_headers_for(owner.id)

    response = await client.delete(f"/companies/{company_id}", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["company_id"] == company_id
    assert data["deleted"]["companies"] == 1
    assert data["deleted"]["roles"] == 1
    assert data["deleted"]["role_permissions"] == len(CATALOG_PERMISSIONS)

    roles = await client.get(f"/rbac/roles/company/{company_id}", headers=headers)
    assert roles.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_member_lifecycle(client, acme_via_api, owner, auth_headers_for):
    """Test registering, listing and removing a company user"""
    company_id = acme_via_api["company"]["id"]
    headers = auth_headers_for(owner.id)

    created = await client.post(
        f"/companies/{company_id}/users",
        json={"email": "hire@acme.test", "password": "s3cret-pass"},
        headers=headers,
    )
    assert created.status_code == status.HTTP_201_CREATED
    new_user_id = created.json()["user_id"]

    listed = await client.get(f"/companies/{company_id}/users", headers=headers)
    assert {m["email"] for m in listed.json()} == {"owner@acme.test", "hire@acme.test"}

    removed = await client.delete(f"/companies/{company_id}/users/{new_user_id}", headers=headers)
    assert removed.status_code == status.HTTP_204_NO_CONTENT

    listed = await client.get(f"/companies/{company_id}/users", headers=headers)
    assert [m["email"] for m in listed.json()] == ["owner@acme.test"]


@pytest.mark.asyncio
async def test_add_existing_member_twice(client, acme_via_api, owner, member, auth_headers_for):
    """Test adding an existing user works once and then conflicts"""
    company_id = acme_via_api["company"]["id"]
    headers = auth_headers_for(owner.id)

    first = await client.post(
        f"/companies/{company_id}/members", json={"user_id": member.id}, headers=headers
    )
    second = await client.post(
        f"/companies/{company_id}/members", json={"user_id": member.id}, headers=headers
    )

    assert first.status_code == status.HTTP_201_CREATED
    assert first.json()["is_main"] is False
    assert second.status_code == status.HTTP_409_CONFLICT
