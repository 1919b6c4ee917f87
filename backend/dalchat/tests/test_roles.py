"""Tests for role changes and ownership transfer."""

from fastapi.testclient import TestClient

from dalchat.tests.conftest import auth_headers, create_server, user_id_of


def _setup(client: TestClient):
    alice = auth_headers(client, email="alice@example.com", display_name="Alice")
    bob = auth_headers(client, email="bob@example.com", display_name="Bob")
    carol = auth_headers(client, email="carol@example.com", display_name="Carol")
    server_id = create_server(client, alice)
    client.post(f"/api/servers/{server_id}/join", headers=bob)
    client.post(f"/api/servers/{server_id}/join", headers=carol)
    return alice, bob, carol, server_id


def _set_role(client, headers, server_id, target_id, role):
    return client.put(f"/api/servers/{server_id}/members/{target_id}/role", json={"role": role}, headers=headers)


def _roles(client, headers, server_id) -> dict[str, str]:
    members = client.get(f"/api/servers/{server_id}/members", headers=headers).json()["members"]
    return {m["display_name"]: m["role"] for m in members}


class TestSetRole:
    def test_owner_promotes_and_demotes(self, client: TestClient):
        alice, bob, _, server_id = _setup(client)
        bob_id = user_id_of(client, bob)

        resp = _set_role(client, alice, server_id, bob_id, "admin")
        assert resp.status_code == 200
        assert resp.json()["member"]["role"] == "admin"

        resp = _set_role(client, alice, server_id, bob_id, "moderator")
        assert resp.json()["member"]["role"] == "moderator"
        assert _roles(client, alice, server_id) == {"Alice": "owner", "Bob": "moderator", "Carol": "member"}

    def test_admin_cannot_change_roles(self, client: TestClient):
        alice, bob, carol, server_id = _setup(client)
        _set_role(client, alice, server_id, user_id_of(client, bob), "admin")
        resp = _set_role(client, bob, server_id, user_id_of(client, carol), "moderator")
        assert resp.status_code == 403

    def test_member_cannot_change_roles(self, client: TestClient):
        _, bob, carol, server_id = _setup(client)
        resp = _set_role(client, bob, server_id, user_id_of(client, carol), "admin")
        assert resp.status_code == 403

    def test_invalid_role(self, client: TestClient):
        alice, bob, _, server_id = _setup(client)
        resp = _set_role(client, alice, server_id, user_id_of(client, bob), "superuser")
        assert resp.status_code == 400
        assert "Role must be one of" in resp.json()["error"]

    def test_cannot_assign_owner(self, client: TestClient):
        alice, bob, _, server_id = _setup(client)
        resp = _set_role(client, alice, server_id, user_id_of(client, bob), "owner")
        assert resp.status_code == 400
        assert _roles(client, alice, server_id)["Alice"] == "owner"

    def test_owner_role_is_protected(self, client: TestClient):
        alice, _, _, server_id = _setup(client)
        resp = _set_role(client, alice, server_id, user_id_of(client, alice), "member")
        assert resp.status_code == 400
        assert _roles(client, alice, server_id)["Alice"] == "owner"

    def test_target_must_be_member(self, client: TestClient):
        alice, _, _, server_id = _setup(client)
        eve = auth_headers(client, email="eve@example.com", display_name="Eve")
        resp = _set_role(client, alice, server_id, user_id_of(client, eve), "admin")
        assert resp.status_code == 404

    def test_non_member_actor(self, client: TestClient):
        alice, bob, _, server_id = _setup(client)
        eve = auth_headers(client, email="eve@example.com", display_name="Eve")
        resp = _set_role(client, eve, server_id, user_id_of(client, bob), "admin")
        assert resp.status_code == 403
        assert _roles(client, alice, server_id)["Bob"] == "member"


class TestTransferOwnership:
    def test_transfer(self, client: TestClient):
        alice, bob, _, server_id = _setup(client)
        bob_id = user_id_of(client, bob)
        resp = client.post(
            f"/api/servers/{server_id}/transfer-ownership",
            json={"new_owner_id": bob_id},
            headers=alice,
        )
        assert resp.status_code == 200
        assert resp.json()["server"]["owner_id"] == bob_id
        assert resp.json()["server"]["current_user_role"] == "admin"
        assert _roles(client, alice, server_id) == {"Alice": "admin", "Bob": "owner", "Carol": "member"}

    def test_only_owner_can_transfer(self, client: TestClient):
        _, bob, carol, server_id = _setup(client)
        resp = client.post(
            f"/api/servers/{server_id}/transfer-ownership",
            json={"new_owner_id": user_id_of(client, carol)},
            headers=bob,
        )
        assert resp.status_code == 403

    def test_transfer_to_non_member(self, client: TestClient):
        alice, _, _, server_id = _setup(client)
        eve = auth_headers(client, email="eve@example.com", display_name="Eve")
        resp = client.post(
            f"/api/servers/{server_id}/transfer-ownership",
            json={"new_owner_id": user_id_of(client, eve)},
            headers=alice,
        )
        assert resp.status_code == 404

    def test_transfer_to_self(self, client: TestClient):
        alice, _, _, server_id = _setup(client)
        resp = client.post(
            f"/api/servers/{server_id}/transfer-ownership",
            json={"new_owner_id": user_id_of(client, alice)},
            headers=alice,
        )
        assert resp.status_code == 400
