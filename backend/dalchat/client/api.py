"""Async REST client for the DALChat HTTP API."""

import logging

import httpx

logger = logging.getLogger(__name__)


class ChatAPIError(Exception):
    """A non-2xx response, carrying the server's error message verbatim."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class ChatClient:
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.token = token
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        resp = await self._http.request(method, f"/api{path}", headers=headers, **kwargs)
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.is_error:
            logger.debug("%s %s failed with %s", method, path, resp.status_code)
            raise ChatAPIError(resp.status_code, data.get("error") or resp.reason_phrase)
        return data

    # ── Auth ──────────────────────────────────────────────────────────────

    async def signup(self, email: str, password: str, display_name: str) -> dict:
        data = await self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password, "displayName": display_name},
        )
        self.token = data["token"]
        return data["user"]

    async def login(self, email: str, password: str) -> dict:
        data = await self._request("POST", "/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data["user"]

    async def logout(self) -> None:
        await self._request("POST", "/logout")
        self.token = None

    # ── Servers ───────────────────────────────────────────────────────────

    async def list_servers(self) -> list[dict]:
        return (await self._request("GET", "/servers"))["servers"]

    async def create_server(self, name: str) -> dict:
        return (await self._request("POST", "/servers", json={"name": name}))["server"]

    async def get_server(self, server_id: str) -> dict:
        return (await self._request("GET", f"/servers/{server_id}"))["server"]

    async def join_server(self, server_id: str) -> dict:
        return (await self._request("POST", f"/servers/{server_id}/join"))["member"]

    async def set_role(self, server_id: str, user_id: str, role: str) -> dict:
        data = await self._request("PUT", f"/servers/{server_id}/members/{user_id}/role", json={"role": role})
        return data["member"]

    # ── Channels & messages ───────────────────────────────────────────────

    async def create_channel(self, server_id: str, name: str) -> dict:
        return (await self._request("POST", f"/servers/{server_id}/channels", json={"name": name}))["channel"]

    async def delete_channel(self, server_id: str, channel_id: str) -> None:
        await self._request("DELETE", f"/servers/{server_id}/channels/{channel_id}")

    async def list_messages(self, server_id: str, channel_id: str, after: int | None = None) -> list[dict]:
        params = {"after": after} if after is not None else None
        data = await self._request("GET", f"/servers/{server_id}/messages/{channel_id}", params=params)
        return data["messages"]

    async def send_message(self, server_id: str, channel_id: str, text: str) -> dict:
        data = await self._request("POST", f"/servers/{server_id}/messages/{channel_id}", json={"text": text})
        return data["message"]
