"""
Tests for profile, contact, group and template routes.
"""

import pytest

from conftest import auth, make_bundle
from connectors.credential_store import load_bundle, save_bundle


async def _contact(client, name, email, user_id="user-1"):
    resp = await client.post("/api/contacts", headers=auth(user_id), json={"name": name, "email": email})
    assert resp.status_code == 201
    return resp.json()["id"]


async def _group(client, name="Friends", user_id="user-1", **extra):
    resp = await client.post("/api/groups", headers=auth(user_id), json={"name": name, **extra})
    assert resp.status_code == 201
    return resp.json()["id"]


class TestProfile:
    @pytest.mark.asyncio
    async def test_missing_profile(self, client):
        resp = await client.get("/api/user/profile", headers=auth("nobody"))
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_signup_then_read(self, client):
        resp = await client.post("/api/signup", headers=auth(), json={"name": "Ada", "email": "ada@x.com"})
        assert resp.status_code == 201

        profile = (await client.get("/api/user/profile", headers=auth())).json()
        assert profile["id"] == "user-1"
        assert profile["name"] == "Ada"
        assert profile["isVerified"] is False
        assert profile["isGoogleConnected"] is False

    @pytest.mark.asyncio
    async def test_google_login_marks_verified(self, client):
        resp = await client.post(
            "/api/google-login",
            headers=auth(),
            json={"name": "Ada", "email": "ada@x.com", "photoURL": "https://img/ada.png"},
        )
        assert resp.status_code == 200

        profile = (await client.get("/api/user/profile", headers=auth())).json()
        assert profile["isVerified"] is True
        assert profile["photoURL"] == "https://img/ada.png"
        assert profile["lastLogin"] is not None

    @pytest.mark.asyncio
    async def test_update(self, client):
        await client.post("/api/signup", headers=auth(), json={"name": "Ada", "email": "ada@x.com"})

        resp = await client.put("/api/user/profile", headers=auth(), json={"name": "Ada L."})
        assert resp.status_code == 200

        profile = (await client.get("/api/user/profile", headers=auth())).json()
        assert profile["name"] == "Ada L."
        assert profile["email"] == "ada@x.com"

    @pytest.mark.asyncio
    async def test_credentials_never_exposed(self, client, session_factory):
        async with session_factory() as s:
            await save_bundle(s, "user-1", make_bundle(access_token="secret-access", refresh_token="secret-refresh"))
            await s.commit()

        resp = await client.get("/api/user/profile", headers=auth())

        assert resp.json()["isGoogleConnected"] is True
        assert "secret-access" not in resp.text
        assert "secret-refresh" not in resp.text

    @pytest.mark.asyncio
    async def test_disconnect_google(self, client, connector, session_factory):
        async with session_factory() as s:
            await save_bundle(s, "user-1", make_bundle(refresh_token="r-9"))
            await s.commit()

        resp = await client.delete("/api/user/profile/google-connection", headers=auth())

        assert resp.status_code == 200
        assert connector.revoked == ["r-9"]
        async with session_factory() as s:
            assert await load_bundle(s, "user-1") is None

    @pytest.mark.asyncio
    async def test_disconnect_when_not_connected(self, client, connector):
        resp = await client.delete("/api/user/profile/google-connection", headers=auth())

        assert resp.status_code == 200
        assert connector.revoked == []


class TestContacts:
    @pytest.mark.asyncio
    async def test_create_and_list(self, client):
        await _contact(client, "Ada", "ada@x.com")
        await _contact(client, "Bob", "bob@x.com")
        await _contact(client, "Eve", "eve@x.com", user_id="user-2")

        contacts = (await client.get("/api/contacts", headers=auth())).json()

        assert [c["email"] for c in contacts] == ["ada@x.com", "bob@x.com"]
        assert all(c["userId"] == "user-1" for c in contacts)

    @pytest.mark.asyncio
    async def test_update(self, client):
        contact_id = await _contact(client, "Ada", "ada@x.com")

        resp = await client.post(
            f"/api/update-contact/{contact_id}",
            headers=auth(),
            json={"name": "Ada L.", "email": "ada@y.com"},
        )

        assert resp.status_code == 200
        assert resp.json()["email"] == "ada@y.com"

    @pytest.mark.asyncio
    async def test_foreign_contact_is_not_found(self, client):
        contact_id = await _contact(client, "Eve", "eve@x.com", user_id="user-2")

        update = await client.post(
            f"/api/update-contact/{contact_id}", headers=auth(), json={"name": "x", "email": "x@x.com"}
        )
        delete = await client.delete(f"/api/contacts/{contact_id}", headers=auth())

        assert update.status_code == 404
        assert delete.status_code == 404
        assert len((await client.get("/api/contacts", headers=auth("user-2"))).json()) == 1

    @pytest.mark.asyncio
    async def test_delete_removes_group_membership(self, client):
        contact_id = await _contact(client, "Ada", "ada@x.com")
        group_id = await _group(client)
        await client.post(f"/api/groups/{group_id}/contacts", headers=auth(), json={"contactIds": [contact_id]})

        resp = await client.delete(f"/api/contacts/{contact_id}", headers=auth())

        assert resp.status_code == 200
        members = (await client.get(f"/api/groups/{group_id}/contacts", headers=auth())).json()
        assert members == []


class TestGroups:
    @pytest.mark.asyncio
    async def test_name_required(self, client):
        resp = await client.post("/api/groups", headers=auth(), json={"description": "no name"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_membership(self, client):
        ada = await _contact(client, "Ada", "ada@x.com")
        bob = await _contact(client, "Bob", "bob@x.com")
        group_id = await _group(client, description="close")

        added = await client.post(
            f"/api/groups/{group_id}/contacts", headers=auth(), json={"contactIds": [ada, bob, ada]}
        )
        assert added.status_code == 200

        group = (await client.get(f"/api/groups/{group_id}", headers=auth())).json()
        assert group["description"] == "close"
        assert sorted(c["id"] for c in group["contacts"]) == sorted([ada, bob])

        removed = await client.request(
            "DELETE", f"/api/groups/{group_id}/contacts", headers=auth(), json={"contactIds": [bob]}
        )
        assert removed.status_code == 200

        members = (await client.get(f"/api/groups/{group_id}/contacts", headers=auth())).json()
        assert [c["id"] for c in members] == [ada]

    @pytest.mark.asyncio
    async def test_empty_member_list(self, client):
        group_id = await _group(client)
        resp = await client.post(f"/api/groups/{group_id}/contacts", headers=auth(), json={"contactIds": []})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_update_syncs_membership(self, client):
        ada = await _contact(client, "Ada", "ada@x.com")
        bob = await _contact(client, "Bob", "bob@x.com")
        group_id = await _group(client)
        await client.post(f"/api/groups/{group_id}/contacts", headers=auth(), json={"contactIds": [ada]})

        resp = await client.put(
            f"/api/groups/{group_id}",
            headers=auth(),
            json={"name": "Renamed", "contactIds": [bob]},
        )

        assert resp.status_code == 200
        group = (await client.get(f"/api/groups/{group_id}", headers=auth())).json()
        assert group["name"] == "Renamed"
        assert [c["id"] for c in group["contacts"]] == [bob]

    @pytest.mark.asyncio
    async def test_foreign_contacts_rejected(self, client):
        eve = await _contact(client, "Eve", "eve@x.com", user_id="user-2")
        group_id = await _group(client)

        resp = await client.post(f"/api/groups/{group_id}/contacts", headers=auth(), json={"contactIds": [eve]})

        assert resp.status_code == 404
        members = (await client.get(f"/api/groups/{group_id}/contacts", headers=auth())).json()
        assert members == []

    @pytest.mark.asyncio
    async def test_foreign_group_is_not_found(self, client):
        group_id = await _group(client, user_id="user-2")

        assert (await client.get(f"/api/groups/{group_id}", headers=auth())).status_code == 404
        assert (await client.put(f"/api/groups/{group_id}", headers=auth(), json={"name": "x"})).status_code == 404
        assert (await client.delete(f"/api/groups/{group_id}", headers=auth())).status_code == 404
        assert (await client.get(f"/api/groups/{group_id}/contacts", headers=auth())).status_code == 404

    @pytest.mark.asyncio
    async def test_list_and_delete(self, client):
        ada = await _contact(client, "Ada", "ada@x.com")
        group_id = await _group(client)
        await client.post(f"/api/groups/{group_id}/contacts", headers=auth(), json={"contactIds": [ada]})
        await _group(client, name="Work")

        groups = (await client.get("/api/groups", headers=auth())).json()
        assert [g["name"] for g in groups] == ["Friends", "Work"]

        resp = await client.delete(f"/api/groups/{group_id}", headers=auth())
        assert resp.status_code == 200
        assert [g["name"] for g in (await client.get("/api/groups", headers=auth())).json()] == ["Work"]
        # the contact itself survives
        assert len((await client.get("/api/contacts", headers=auth())).json()) == 1


class TestTemplates:
    @pytest.mark.asyncio
    async def test_crud(self, client):
        created = await client.post(
            "/api/templates", headers=auth(), json={"name": "Welcome", "content": "Hello!"}
        )
        assert created.status_code == 200
        template_id = created.json()["id"]

        updated = await client.put(
            f"/api/templates/{template_id}", headers=auth(), json={"name": "Welcome", "content": "Hi!"}
        )
        assert updated.json()["content"] == "Hi!"

        listed = (await client.get("/api/templates", headers=auth())).json()
        assert [t["content"] for t in listed] == ["Hi!"]

        deleted = await client.delete(f"/api/templates/{template_id}", headers=auth())
        assert deleted.status_code == 200
        assert (await client.get("/api/templates", headers=auth())).json() == []

    @pytest.mark.asyncio
    async def test_foreign_template_is_not_found(self, client):
        created = await client.post(
            "/api/templates", headers=auth("user-2"), json={"name": "Private", "content": "..."}
        )
        template_id = created.json()["id"]

        assert (await client.put(f"/api/templates/{template_id}", headers=auth(), json={"name": "x"})).status_code == 404
        assert (await client.delete(f"/api/templates/{template_id}", headers=auth())).status_code == 404
        assert (await client.get("/api/templates", headers=auth())).json() == []
