"""Build merge and replace updates for stack instances."""
from __future__ import annotations

from dataclasses import dataclass, replace as dataclass_replace

import yaml

from .errors import InstanceDecodeError
from .models import InstancePatch
from .resolver import instance_path

REPLACE_QUERY = "replace=1"


@dataclass(frozen=True, slots=True)
class PatchRequest:
    """Ready-to-submit PATCH: target path plus encoded payload."""

    path: str
    payload: dict[str, object]
    replace: bool = False


@dataclass(frozen=True, slots=True)
class RawPatchRequest:
    """PATCH with an operator-supplied body sent verbatim."""

    path: str
    body: bytes
    replace: bool = False


def patch_path(instance_id: str, *, replace: bool = False) -> str:
    """Return the PATCH path, adding ``?replace=1`` for full replacement."""
    path = instance_path(instance_id)
    if replace:
        path = f"{path}?{REPLACE_QUERY}"
    return path


def scrub_git_remote(change: InstancePatch) -> InstancePatch:
    """Drop a ``gitRemote`` that only carries the read-only public URL.

    A patch document assembled from a previous read carries ``gitRemote.public``
    even when the operator never meant to change git coordinates; the Hub
    rejects it as a write to a read-only property.
    """
    if change.git_remote is None or change.git_remote.has_refs:
        return change
    return dataclass_replace(change, git_remote=None)


class PatchBuilder:
    """Construct :class:`PatchRequest` objects for the commander."""

    def build(
        self,
        instance_id: str,
        change: InstancePatch,
        *,
        replace: bool = False,
    ) -> PatchRequest:
        """Return a merge (or, with *replace*, full-replace) update."""
        scrubbed = scrub_git_remote(change)
        return PatchRequest(
            path=patch_path(instance_id, replace=replace),
            payload=scrubbed.to_dict(),
            replace=replace,
        )

    def build_raw(self, instance_id: str, body: bytes, *, replace: bool = False) -> RawPatchRequest:
        """Return an update whose body is passed through untouched."""
        return RawPatchRequest(
            path=patch_path(instance_id, replace=replace),
            body=body,
            replace=replace,
        )


def load_patch_document(text: str) -> InstancePatch:
    """Parse a YAML or JSON patch document into an :class:`InstancePatch`."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InstanceDecodeError(f"Unable to parse patch document: {exc}") from exc
    return InstancePatch.from_dict(data)


__all__ = [
    "PatchBuilder",
    "PatchRequest",
    "RawPatchRequest",
    "load_patch_document",
    "patch_path",
    "scrub_git_remote",
]
