"""HTTP transport for the Hub API.

The resolver and commander only depend on the :class:`Transport` protocol:
verb-level calls returning a status code and a decoded (or raw) body.
:class:`HubTransport` implements it on top of a ``requests`` session.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

import requests

from . import get_version
from .errors import TransportError

JSON_CONTENT_TYPE = "application/json"


class Transport(Protocol):
    """Collaborator contract consumed by the resolver and commander."""

    def get(self, path: str) -> tuple[int, object]:
        ...

    def get2(self, path: str) -> tuple[int, bytes]:
        ...

    def post2(self, path: str, body: bytes | Mapping[str, object] | None) -> tuple[int, object]:
        ...

    def patch(self, path: str, body: Mapping[str, object]) -> tuple[int, object]:
        ...

    def patch2(self, path: str, body: bytes) -> tuple[int, object]:
        ...

    def delete(self, path: str) -> int:
        ...


@dataclass(slots=True)
class HubTransport:
    """``requests``-backed implementation of :class:`Transport`."""

    base_url: str
    token: str | None = None
    timeout: float = 30.0
    verify_tls: bool = True
    session: requests.Session = field(default_factory=requests.Session)

    def url_for(self, path: str) -> str:
        """Join *path* onto the configured API base URL."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    # Contract -------------------------------------------------------------
    def get(self, path: str) -> tuple[int, object]:
        """GET *path* and decode a JSON body."""
        response = self._request("GET", path)
        return response.status_code, self._decode(response, path)

    def get2(self, path: str) -> tuple[int, bytes]:
        """GET *path* and return the raw body."""
        response = self._request("GET", path, accept="*/*")
        return response.status_code, response.content

    def post2(
        self,
        path: str,
        body: bytes | Mapping[str, object] | None,
    ) -> tuple[int, object]:
        """POST *body* (raw bytes or a JSON mapping) to *path*."""
        response = self._request("POST", path, body=body)
        return response.status_code, self._decode(response, path)

    def patch(self, path: str, body: Mapping[str, object]) -> tuple[int, object]:
        """PATCH *path* with a JSON-encoded mapping."""
        response = self._request("PATCH", path, body=body)
        return response.status_code, self._decode(response, path)

    def patch2(self, path: str, body: bytes) -> tuple[int, object]:
        """PATCH *path* with a raw JSON body."""
        response = self._request("PATCH", path, body=body)
        return response.status_code, self._decode(response, path)

    def delete(self, path: str) -> int:
        """DELETE *path* and return the status code."""
        return self._request("DELETE", path).status_code

    # ------------------------------------------------------------------
    def _headers(self, accept: str, with_body: bool) -> dict[str, str]:
        headers = {
            "Accept": accept,
            "User-Agent": f"hubctl/{get_version()}",
        }
        if with_body:
            headers["Content-Type"] = JSON_CONTENT_TYPE
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        body: bytes | Mapping[str, object] | None = None,
        accept: str = JSON_CONTENT_TYPE,
    ) -> requests.Response:
        data: bytes | None
        if body is None:
            data = None
        elif isinstance(body, (bytes, bytearray)):
            data = bytes(body)
        else:
            data = json.dumps(body).encode("utf-8")
        url = self.url_for(path)
        try:
            return self.session.request(
                method,
                url,
                data=data,
                headers=self._headers(accept, data is not None),
                timeout=self.timeout,
                verify=self.verify_tls,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

    @staticmethod
    def _decode(response: requests.Response, path: str) -> object:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            if response.ok:
                raise TransportError(f"Unable to decode JSON response from {path}: {exc}") from exc
            # error bodies are informational only
            return response.text


__all__ = ["HubTransport", "JSON_CONTENT_TYPE", "Transport"]
