"""Resolve user-supplied selectors to stack instances.

A selector is either a numeric instance Id or an instance Domain. Numeric
selectors are always treated as Ids and fetched directly; anything else is
looked up through the domain filter, where more than one match is a server
side uniqueness violation that is reported rather than silently resolved.
"""
from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from urllib.parse import quote

from .errors import AmbiguousError, NotFoundError, expected_status
from .models import Instance
from .transport import Transport

INSTANCES_RESOURCE = "hub/api/v1/instances"

_UINT_RE = re.compile(r"[0-9]+")


def is_instance_id(selector: str) -> bool:
    """Return ``True`` when *selector* is an unsigned integer literal."""
    return _UINT_RE.fullmatch(selector) is not None


def instance_path(instance_id: str, suffix: str = "") -> str:
    """Return the resource path for *instance_id* with an optional *suffix*."""
    path = f"{INSTANCES_RESOURCE}/{quote(instance_id, safe='')}"
    if suffix:
        path = f"{path}/{suffix.lstrip('/')}"
    return path


def domain_query_path(domain: str) -> str:
    """Return the filtered list path for *domain* (all instances when empty)."""
    if not domain:
        return INSTANCES_RESOURCE
    return f"{INSTANCES_RESOURCE}?domain={quote(domain, safe='')}"


@dataclass(slots=True)
class SelectorCache:
    """Instances resolved during one command run, keyed by literal selector.

    Not synchronised; one cache belongs to one command execution.
    """

    _entries: dict[str, Instance] = field(default_factory=dict)

    def get(self, selector: str) -> Instance | None:
        return self._entries.get(selector)

    def put(self, selector: str, instance: Instance) -> None:
        self._entries[selector] = instance

    def __contains__(self, selector: object) -> bool:
        return selector in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)


@dataclass(slots=True)
class SelectorResolver:
    """Map selectors to exactly one :class:`Instance`."""

    transport: Transport
    cache: SelectorCache = field(default_factory=SelectorCache)

    def resolve(self, selector: str) -> Instance:
        """Return the single instance denoted by *selector*.

        Raises :class:`NotFoundError`, :class:`AmbiguousError` or
        :class:`~hubctl.errors.ProtocolError`.
        """
        cached = self.cache.get(selector)
        if cached is not None:
            return cached
        if is_instance_id(selector):
            instance = self._by_id(selector)
            if instance is None:
                raise NotFoundError(selector)
        else:
            instance = self._single_by_domain(selector)
        self.cache.put(selector, instance)
        return instance

    def lookup(self, selector: str) -> list[Instance]:
        """Return every instance matching *selector* (all when empty)."""
        if selector and is_instance_id(selector):
            instance = self._by_id(selector)
            return [instance] if instance is not None else []
        return self._by_domain(selector)

    # ------------------------------------------------------------------
    def _by_id(self, instance_id: str) -> Instance | None:
        status, body = self.transport.get(instance_path(instance_id))
        if status == 404:
            return None
        if status != 200:
            raise expected_status(status, (200,), "querying Stack Instances")
        return Instance.from_dict(body)

    def _by_domain(self, domain: str) -> list[Instance]:
        status, body = self.transport.get(domain_query_path(domain))
        if status == 404:
            return []
        if status != 200:
            raise expected_status(status, (200,), "querying Stack Instances")
        return Instance.list_from_payload(body)

    def _single_by_domain(self, domain: str) -> Instance:
        instances = self._by_domain(domain)
        if not instances:
            raise NotFoundError(domain)
        if len(instances) > 1:
            raise AmbiguousError(domain, len(instances))
        return instances[0]


__all__ = [
    "INSTANCES_RESOURCE",
    "SelectorCache",
    "SelectorResolver",
    "domain_query_path",
    "instance_path",
    "is_instance_id",
]
