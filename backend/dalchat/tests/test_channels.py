"""Tests for channel creation and deletion inside a server."""

from fastapi.testclient import TestClient

from dalchat.tests.conftest import auth_headers, create_server, user_id_of


def _setup(client: TestClient):
    """Alice owns a server that Bob has joined as a plain member."""
    alice = auth_headers(client, email="alice@example.com", display_name="Alice")
    bob = auth_headers(client, email="bob@example.com", display_name="Bob")
    server_id = create_server(client, alice)
    client.post(f"/api/servers/{server_id}/join", headers=bob)
    return alice, bob, server_id


class TestCreateChannel:
    def test_owner_creates_channel_with_slug_id(self, client: TestClient):
        alice, _, server_id = _setup(client)
        resp = client.post(f"/api/servers/{server_id}/channels", json={"name": "Dev  Talk"}, headers=alice)
        assert resp.status_code == 201
        channel = resp.json()["channel"]
        assert channel["id"] == "dev-talk"
        assert channel["name"] == "Dev  Talk"
        assert channel["server_id"] == server_id
        assert channel["last_seq"] == 0

        channels = client.get(f"/api/servers/{server_id}/channels", headers=alice).json()["channels"]
        assert [c["id"] for c in channels] == ["general", "announcements", "dev-talk"]

    def test_admin_can_create_channel(self, client: TestClient):
        alice, bob, server_id = _setup(client)
        client.put(f"/api/servers/{server_id}/members/{user_id_of(client, bob)}/role",
                   json={"role": "admin"}, headers=alice)
        resp = client.post(f"/api/servers/{server_id}/channels", json={"name": "random"}, headers=bob)
        assert resp.status_code == 201

    def test_member_cannot_create_channel(self, client: TestClient):
        _, bob, server_id = _setup(client)
        resp = client.post(f"/api/servers/{server_id}/channels", json={"name": "random"}, headers=bob)
        assert resp.status_code == 403
        assert resp.json()["error"] == "You do not have permission to do that"

    def test_moderator_cannot_create_channel(self, client: TestClient):
        alice, bob, server_id = _setup(client)
        client.put(f"/api/servers/{server_id}/members/{user_id_of(client, bob)}/role",
                   json={"role": "moderator"}, headers=alice)
        resp = client.post(f"/api/servers/{server_id}/channels", json={"name": "random"}, headers=bob)
        assert resp.status_code == 403

    def test_non_member_cannot_create_channel(self, client: TestClient):
        _, _, server_id = _setup(client)
        eve = auth_headers(client, email="eve@example.com", display_name="Eve")
        resp = client.post(f"/api/servers/{server_id}/channels", json={"name": "random"}, headers=eve)
        assert resp.status_code == 403
        assert resp.json()["error"] == "You are not a member of this server"

    def test_duplicate_slug_is_rejected(self, client: TestClient):
        alice, _, server_id = _setup(client)
        client.post(f"/api/servers/{server_id}/channels", json={"name": "dev talk"}, headers=alice)
        resp = client.post(f"/api/servers/{server_id}/channels", json={"name": "Dev Talk"}, headers=alice)
        assert resp.status_code == 400

    def test_seeded_name_is_taken(self, client: TestClient):
        alice, _, server_id = _setup(client)
        resp = client.post(f"/api/servers/{server_id}/channels", json={"name": "General"}, headers=alice)
        assert resp.status_code == 400

    def test_same_name_in_two_servers(self, client: TestClient):
        alice, _, server_id = _setup(client)
        other = create_server(client, alice, name="Other")
        for sid in (server_id, other):
            resp = client.post(f"/api/servers/{sid}/channels", json={"name": "dev"}, headers=alice)
            assert resp.status_code == 201

    def test_blank_name(self, client: TestClient):
        alice, _, server_id = _setup(client)
        resp = client.post(f"/api/servers/{server_id}/channels", json={"name": "   "}, headers=alice)
        assert resp.status_code == 400


class TestDeleteChannel:
    def test_owner_deletes_channel_and_messages(self, client: TestClient, db):
        alice, _, server_id = _setup(client)
        client.post(f"/api/servers/{server_id}/channels", json={"name": "tmp"}, headers=alice)
        client.post(f"/api/servers/{server_id}/messages/tmp", json={"text": "bye"}, headers=alice)

        resp = client.delete(f"/api/servers/{server_id}/channels/tmp", headers=alice)
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        channels = client.get(f"/api/servers/{server_id}/channels", headers=alice).json()["channels"]
        assert "tmp" not in [c["id"] for c in channels]
        assert client.get(f"/api/servers/{server_id}/messages/tmp", headers=alice).status_code == 404

    def test_recreated_channel_starts_empty(self, client: TestClient):
        alice, _, server_id = _setup(client)
        client.post(f"/api/servers/{server_id}/channels", json={"name": "tmp"}, headers=alice)
        client.post(f"/api/servers/{server_id}/messages/tmp", json={"text": "old"}, headers=alice)
        client.delete(f"/api/servers/{server_id}/channels/tmp", headers=alice)
        client.post(f"/api/servers/{server_id}/channels", json={"name": "tmp"}, headers=alice)

        resp = client.get(f"/api/servers/{server_id}/messages/tmp", headers=alice)
        assert resp.json()["messages"] == []

    def test_general_cannot_be_deleted(self, client: TestClient):
        alice, bob, server_id = _setup(client)
        for headers in (alice, bob):
            resp = client.delete(f"/api/servers/{server_id}/channels/general", headers=headers)
            assert resp.status_code == 400
            assert resp.json()["error"] == "The general channel cannot be deleted"

    def test_member_cannot_delete(self, client: TestClient):
        _, bob, server_id = _setup(client)
        resp = client.delete(f"/api/servers/{server_id}/channels/announcements", headers=bob)
        assert resp.status_code == 403

    def test_delete_unknown_channel(self, client: TestClient):
        alice, _, server_id = _setup(client)
        resp = client.delete(f"/api/servers/{server_id}/channels/nope", headers=alice)
        assert resp.status_code == 404
