"""
Tests for organizations: creation, membership-scoped reads, and management.
"""

import uuid


async def create_organization(client, name="Acme", **extra):
    response = await client.post("/v1/organizations", json={"name": name, **extra})
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateOrganization:

    async def test_creator_owns_and_joins(self, authenticated_client, alice):
        org = await create_organization(authenticated_client, description="Widgets")
        assert org["name"] == "Acme"
        assert org["description"] == "Widgets"
        assert org["owner_id"] == alice["id"]

        me = (await authenticated_client.get("/v1/users/me")).json()
        assert me["role"] == "user"
        assert me["organization_id"] == org["id"]
        assert me["organization_name"] == "Acme"

    async def test_creating_organization_grants_no_admin_access(self, authenticated_client, bob):
        await create_organization(authenticated_client)

        listing = await authenticated_client.get("/v1/admin/users")
        assert listing.status_code == 403

        promotion = await authenticated_client.put(
            f"/v1/admin/users/{bob['id']}/role", json={"role": "admin"}
        )
        assert promotion.status_code == 403
        me = (await authenticated_client.get("/v1/users/me")).json()
        assert me["role"] == "user"

    async def test_blank_name(self, authenticated_client):
        response = await authenticated_client.post("/v1/organizations", json={"name": "  "})
        assert response.status_code == 422

    async def test_join_at_registration(self, authenticated_client, register_user):
        org = await create_organization(authenticated_client)
        carol = await register_user("carol", organization_id=org["id"])
        assert carol["organization_id"] == org["id"]
        assert carol["organization_name"] == "Acme"
        assert carol["role"] == "user"


class TestReadOrganization:

    async def test_member_can_view(self, authenticated_client, register_user):
        org = await create_organization(authenticated_client)
        carol = await register_user("carol", organization_id=org["id"])

        response = await authenticated_client.get(
            f"/v1/organizations/{org['id']}",
            headers={"Authorization": f"APIKEY {carol['api_key']}"},
        )
        assert response.status_code == 200
        assert response.json()["id"] == org["id"]

    async def test_outsider_cannot_view(self, authenticated_client, bob):
        org = await create_organization(authenticated_client)
        response = await authenticated_client.get(
            f"/v1/organizations/{org['id']}",
            headers={"Authorization": f"APIKEY {bob['api_key']}"},
        )
        assert response.status_code == 403

    async def test_admin_can_view_any(self, authenticated_client, bob, promote):
        org = await create_organization(authenticated_client)
        await promote("bob", "admin")
        response = await authenticated_client.get(
            f"/v1/organizations/{org['id']}",
            headers={"Authorization": f"APIKEY {bob['api_key']}"},
        )
        assert response.status_code == 200

    async def test_list_members(self, authenticated_client, register_user):
        org = await create_organization(authenticated_client)
        await register_user("carol", organization_id=org["id"])

        response = await authenticated_client.get(f"/v1/organizations/{org['id']}/users")
        assert response.status_code == 200
        assert [u["username"] for u in response.json()] == ["alice", "carol"]

    async def test_missing_organization(self, admin_client):
        response = await admin_client.get(f"/v1/organizations/{uuid.uuid4()}")
        assert response.status_code == 404


class TestManageOrganization:

    async def test_owner_updates(self, authenticated_client):
        org = await create_organization(authenticated_client)
        response = await authenticated_client.put(
            f"/v1/organizations/{org['id']}", json={"description": "Now with gadgets"}
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Acme"
        assert response.json()["description"] == "Now with gadgets"

    async def test_admin_updates_any(self, authenticated_client, bob, promote):
        org = await create_organization(authenticated_client)
        await promote("bob", "admin")
        response = await authenticated_client.put(
            f"/v1/organizations/{org['id']}",
            json={"name": "Acme Ltd"},
            headers={"Authorization": f"APIKEY {bob['api_key']}"},
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Acme Ltd"

    async def test_member_cannot_update(self, authenticated_client, register_user):
        org = await create_organization(authenticated_client)
        carol = await register_user("carol", organization_id=org["id"])
        response = await authenticated_client.put(
            f"/v1/organizations/{org['id']}",
            json={"name": "Carol Corp"},
            headers={"Authorization": f"APIKEY {carol['api_key']}"},
        )
        assert response.status_code == 403

    async def test_owner_of_another_organization_cannot_update(self, authenticated_client, bob):
        org = await create_organization(authenticated_client)
        bob_headers = {"Authorization": f"APIKEY {bob['api_key']}"}
        await authenticated_client.post(
            "/v1/organizations", json={"name": "Bob Inc"}, headers=bob_headers
        )

        response = await authenticated_client.put(
            f"/v1/organizations/{org['id']}", json={"name": "Taken"}, headers=bob_headers
        )
        assert response.status_code == 403

    async def test_admin_deletion_is_forbidden(self, authenticated_client, bob, promote):
        org = await create_organization(authenticated_client)
        await promote("bob", "admin")
        response = await authenticated_client.delete(
            f"/v1/organizations/{org['id']}",
            headers={"Authorization": f"APIKEY {bob['api_key']}"},
        )
        assert response.status_code == 403

    async def test_owner_deletes(self, authenticated_client):
        org = await create_organization(authenticated_client)
        response = await authenticated_client.delete(f"/v1/organizations/{org['id']}")
        assert response.status_code == 204

        gone = await authenticated_client.get(f"/v1/organizations/{org['id']}")
        assert gone.status_code == 404

    async def test_member_cannot_delete(self, authenticated_client, register_user):
        org = await create_organization(authenticated_client)
        carol = await register_user("carol", organization_id=org["id"])
        response = await authenticated_client.delete(
            f"/v1/organizations/{org['id']}",
            headers={"Authorization": f"APIKEY {carol['api_key']}"},
        )
        assert response.status_code == 403

    async def test_owner_role_deletes_any(self, authenticated_client, bob, promote):
        org = await create_organization(authenticated_client)
        await promote("bob", "owner")
        response = await authenticated_client.delete(
            f"/v1/organizations/{org['id']}",
            headers={"Authorization": f"APIKEY {bob['api_key']}"},
        )
        assert response.status_code == 204
