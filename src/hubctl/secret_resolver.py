"""Secret-resolution collaborator used when rendering with ``--secrets``."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

from .errors import HubError, SecretResolutionError
from .models import SECRET_KIND, ParameterValue, ValueKind
from .transport import Transport


class SecretResolver(Protocol):
    """Recover plaintext for a secret value reference."""

    def resolve_secret(self, resource_path: str, value_ref: str, kind: str = SECRET_KIND) -> str:
        ...


def secret_value_ref(value: ParameterValue) -> str:
    """Extract the secret reference carried by a secret-kind value.

    The Hub stores either the bare secret id or an object with ``secret`` /
    ``id`` keys.
    """
    if value.kind is ValueKind.STRING and value.data:
        return str(value.data)
    if value.kind is ValueKind.NUMBER:
        return str(value.data)
    if value.kind is ValueKind.STRUCTURED and isinstance(value.data, Mapping):
        for key in ("secret", "id"):
            candidate = value.data.get(key)
            if isinstance(candidate, (str, int)) and not isinstance(candidate, bool):
                return str(candidate)
    raise SecretResolutionError("secret value carries no reference")


def _subkind(kind: str) -> str:
    _, _, sub = kind.partition(":")
    return sub


@dataclass(slots=True)
class HubSecretResolver:
    """Fetch secrets from ``{resource_path}/secrets/{ref}``."""

    transport: Transport

    def resolve_secret(self, resource_path: str, value_ref: str, kind: str = SECRET_KIND) -> str:
        path = f"{resource_path}/secrets/{quote(value_ref, safe='')}"
        try:
            status, body = self.transport.get(path)
        except HubError as exc:
            raise SecretResolutionError(f"Unable to retrieve secret `{value_ref}`: {exc}") from exc
        if status != 200:
            raise SecretResolutionError(
                f"Got {status} HTTP retrieving secret `{value_ref}`, expected 200 HTTP"
            )
        if not isinstance(body, Mapping):
            raise SecretResolutionError(f"Secret `{value_ref}` response is not an object")
        values = body.get("values")
        if not isinstance(values, Mapping) or not values:
            raise SecretResolutionError(f"Secret `{value_ref}` has no values")
        wanted = _subkind(kind) or str(body.get("kind") or "")
        if wanted and wanted in values:
            return str(values[wanted])
        if len(values) == 1:
            return str(next(iter(values.values())))
        known = ", ".join(sorted(str(key) for key in values))
        raise SecretResolutionError(
            f"Secret `{value_ref}` has several values ({known}); kind `{kind}` selects none"
        )


__all__ = ["HubSecretResolver", "SecretResolver", "secret_value_ref"]
