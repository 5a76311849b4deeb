"""
client/api.py -- HTTP client for the auth service.

One requests.Session per client for connection pooling. Every non-2xx
response is raised as ApiError carrying the server's error code and message;
transport failures are raised as ApiError with status_code 0 so callers
handle a single exception type.

The CLI authenticates with the Bearer header. The session cookie is marked
Secure and is not sent back over plain http.
"""

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger("userauth.client")

DEFAULT_API_URL = "http://localhost:3001/api/auth"
_TIMEOUT = 10


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str) -> None:
        super().__init__(f"{status_code} {code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message


class AuthClient:
    """Thin wrapper over the /api/auth endpoints.

    Usage:
        client = AuthClient("http://localhost:3001/api/auth")
        data = client.login("a@b.com", "secret1")
        users = client.list_users(data["token"])
    """

    def __init__(self, base_url: str = DEFAULT_API_URL, session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._session = session if session is not None else requests.Session()

    def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        return self._request("POST", "/register", json={"name": name, "email": email, "password": password})

    def login(self, email: str, password: str) -> dict[str, Any]:
        return self._request("POST", "/login", json={"email": email, "password": password})

    def logout(self) -> dict[str, Any]:
        return self._request("POST", "/logout")

    def me(self, token: str) -> dict[str, Any]:
        return self._request("GET", "/me", token=token)

    def list_users(self, token: Optional[str] = None) -> list[dict[str, Any]]:
        return self._request("GET", "/users", token=token)

    def delete_user(self, user_id: str, token: Optional[str] = None) -> dict[str, Any]:
        return self._request("DELETE", f"/{user_id}", token=token)

    def close(self) -> None:
        self._session.close()

    def _request(self, method: str, path: str, token: Optional[str] = None, json: Optional[dict] = None) -> Any:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            resp = self._session.request(method, self.base_url + path, json=json, headers=headers, timeout=_TIMEOUT)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(0, "connection_error", str(e)) from e

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if not resp.ok:
            error = payload.get("error") if isinstance(payload, dict) else None
            if isinstance(error, dict):
                raise ApiError(resp.status_code, error.get("code", "error"), error.get("message", ""))
            raise ApiError(resp.status_code, f"http_{resp.status_code}", resp.reason or "Request failed")
        return payload
