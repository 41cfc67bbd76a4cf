"""Pytest configuration helpers for the test suite."""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping

import pytest


class FakeTransport:
    """In-memory Hub transport recording every call.

    Responses are queued per ``(method, path)``; the last queued response is
    reused once the queue drains. Unrouted requests answer ``404``.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[tuple[int, object]]] = {}
        self.calls: list[tuple[str, str, object]] = []

    def add(self, method: str, path: str, status: int, body: object = None) -> None:
        self.routes.setdefault((method, path), []).append((status, body))

    def paths(self, method: str | None = None) -> list[str]:
        return [path for verb, path, _ in self.calls if method is None or verb == method]

    def _respond(self, method: str, path: str, body: object) -> tuple[int, object]:
        self.calls.append((method, path, body))
        queue = self.routes.get((method, path))
        if not queue:
            return 404, None
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    def get(self, path: str) -> tuple[int, object]:
        return self._respond("GET", path, None)

    def get2(self, path: str) -> tuple[int, bytes]:
        status, body = self._respond("GET", path, None)
        return status, body if isinstance(body, bytes) else b""

    def post2(self, path: str, body: object) -> tuple[int, object]:
        return self._respond("POST", path, body)

    def patch(self, path: str, body: Mapping[str, object]) -> tuple[int, object]:
        return self._respond("PATCH", path, body)

    def patch2(self, path: str, body: bytes) -> tuple[int, object]:
        return self._respond("PATCH", path, body)

    def delete(self, path: str) -> int:
        status, _ = self._respond("DELETE", path, None)
        return status


BASE_INSTANCE: dict[str, object] = {
    "id": "42",
    "name": "app",
    "domain": "app.dev.example.com",
    "description": "Demo application",
    "tags": ["demo", "web"],
    "environment": {"id": "7", "name": "dev", "domain": "dev.example.com"},
    "stack": {"id": "3", "name": "k8s-app"},
    "template": {"id": "5", "name": "web-template"},
    "componentsEnabled": ["ingress", "app"],
    "verbs": ["deploy", "undeploy"],
    "gitRemote": {
        "public": "https://git.example.com/app.git",
        "template": {"ref": "main"},
    },
    "parameters": [
        {"name": "replicas", "kind": "int", "value": 3.0, "component": "app"},
        {"name": "dns.domain", "value": "app.dev.example.com", "origin": "user"},
        {"name": "password", "kind": "secret", "value": "pw-ref", "component": "app"},
    ],
    "outputs": [
        {"name": "url", "component": "ingress", "value": "https://app", "brief": "Endpoint"},
    ],
    "stateFiles": ["s3://bucket/app/hub.state", "/var/lib/hub/app.state"],
    "status": {
        "status": "deployed",
        "template": {
            "commit": "abcdef1234567890",
            "ref": "main",
            "author": "ops",
            "date": "2024-01-02",
            "subject": "Bump",
        },
        "components": [
            {"name": "app", "status": "deployed", "version": "1.2", "outputs": {"b": "2", "a": "1"}},
        ],
    },
}


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Empty fake transport."""
    return FakeTransport()


@pytest.fixture
def make_instance() -> Callable[..., dict[str, object]]:
    """Factory returning a wire payload for an instance, with overrides."""

    def _make(**overrides: object) -> dict[str, object]:
        payload = copy.deepcopy(BASE_INSTANCE)
        payload.update(overrides)
        return payload

    return _make
