"""Lifecycle operations on stack instances.

Every command resolves its selector through the shared
:class:`~hubctl.resolver.SelectorResolver`, talks to the Hub through the
:class:`~hubctl.transport.Transport` contract, and reports failures as
:class:`~hubctl.errors.HubError` subclasses for the CLI dispatcher.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import HubError, InstanceDecodeError, ProtocolError, expected_status
from .follow import LogFollower
from .models import DeployResponse, Instance, InstancePatch, InstanceRequest
from .patch import PatchBuilder
from .resolver import INSTANCES_RESOURCE, SelectorResolver, instance_path, is_instance_id
from .transport import Transport

DRY_RUN_QUERY = "dryRun=1"

CREATE_STATUSES = (200, 201)
COMMAND_STATUSES = (200, 202, 204)
DELETE_STATUSES = (202, 204)
PATCH_STATUSES = (200,)


@dataclass(frozen=True, slots=True)
class CommandOutcome:
    """Result of a deploy/undeploy request."""

    instance: Instance
    verb: str
    job_id: str = ""
    dry_run: bool = False
    tail_status: int | None = None

    @property
    def exit_code(self) -> int:
        """Exit status of the command: the tail's status when it waited."""
        return 0 if self.tail_status is None else self.tail_status


@dataclass(frozen=True, slots=True)
class DeleteOutcome:
    """Result of a delete request."""

    instance_id: str
    domain: str = ""
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class KubeconfigPayload:
    """Kubeconfig bytes fetched for an instance."""

    instance: Instance
    body: bytes


@dataclass(slots=True)
class InstanceCommander:
    """Issue create/deploy/undeploy/delete/patch/kubeconfig requests."""

    transport: Transport
    resolver: SelectorResolver
    follower: LogFollower | None = None
    patches: PatchBuilder = field(default_factory=PatchBuilder)

    def create(self, request: InstanceRequest) -> Instance:
        """Create an instance from a full request payload."""
        status, body = self.transport.post2(INSTANCES_RESOURCE, request.to_dict())
        if status not in CREATE_STATUSES:
            raise expected_status(status, CREATE_STATUSES, "creating Stack Instance")
        return Instance.from_dict(body)

    def deploy(self, selector: str, *, wait: bool = False, dry_run: bool = False) -> CommandOutcome:
        """Request a deploy; with *wait*, follow logs until the job settles."""
        return self._command(selector, "deploy", wait=wait, dry_run=dry_run)

    def undeploy(
        self,
        selector: str,
        *,
        wait: bool = False,
        dry_run: bool = False,
    ) -> CommandOutcome:
        """Request an undeploy; with *wait*, follow logs until the job settles."""
        return self._command(selector, "undeploy", wait=wait, dry_run=dry_run)

    def delete(self, selector: str) -> DeleteOutcome:
        """Delete the instance denoted by *selector*.

        A numeric selector whose instance body cannot be decoded is still
        deleted by Id, with a warning, so broken records can be removed.
        """
        warnings: list[str] = []
        domain = ""
        try:
            instance = self.resolver.resolve(selector)
        except InstanceDecodeError as exc:
            if not is_instance_id(selector):
                raise
            warnings.append(f"{exc}; deleting Stack Instance by id {selector}")
            instance_id = selector
        else:
            instance_id = instance.id
            domain = instance.domain
        status = self.transport.delete(instance_path(instance_id))
        if status not in DELETE_STATUSES:
            raise expected_status(status, DELETE_STATUSES, "deleting Stack Instance")
        return DeleteOutcome(instance_id=instance_id, domain=domain, warnings=tuple(warnings))

    def fetch_kubeconfig(self, selector: str) -> KubeconfigPayload:
        """Download the kubeconfig of the instance denoted by *selector*."""
        instance = self.resolver.resolve(selector)
        status, body = self.transport.get2(instance_path(instance.id, "config"))
        if status != 200:
            raise expected_status(status, (200,), "fetching Stack Instance Kubeconfig")
        if not body:
            raise ProtocolError("Got empty Stack Instance Kubeconfig")
        return KubeconfigPayload(instance=instance, body=body)

    def patch(
        self,
        selector: str,
        change: InstancePatch,
        *,
        replace: bool = False,
    ) -> Instance:
        """Submit a typed merge (or replace) patch; returns the server's snapshot."""
        instance = self.resolver.resolve(selector)
        request = self.patches.build(instance.id, change, replace=replace)
        status, body = self.transport.patch(request.path, request.payload)
        return self._patched(status, body)

    def raw_patch(self, selector: str, body: bytes, *, replace: bool = False) -> Instance:
        """Submit an operator-supplied patch body verbatim."""
        instance = self.resolver.resolve(selector)
        request = self.patches.build_raw(instance.id, body, replace=replace)
        status, response = self.transport.patch2(request.path, request.body)
        return self._patched(status, response)

    # ------------------------------------------------------------------
    def _command(self, selector: str, verb: str, *, wait: bool, dry_run: bool) -> CommandOutcome:
        instance = self.resolver.resolve(selector)
        path = instance_path(instance.id, verb)
        if dry_run:
            path = f"{path}?{DRY_RUN_QUERY}"
        status, body = self.transport.post2(path, None)
        if status not in COMMAND_STATUSES:
            raise expected_status(
                status, COMMAND_STATUSES, f"in response to {verb} Stack Instance"
            )
        job_id = DeployResponse.from_dict(body).job_id if isinstance(body, Mapping) else ""
        tail_status: int | None = None
        if wait:
            if self.follower is None:
                raise HubError(f"Unable to wait for {verb}: no log follower configured")
            tail_status = self.follower.follow(
                [instance.domain],
                job_id=job_id,
                previous=[operation.id for operation in instance.inflight_operations],
            )
        return CommandOutcome(
            instance=instance,
            verb=verb,
            job_id=job_id,
            dry_run=dry_run,
            tail_status=tail_status,
        )

    @staticmethod
    def _patched(status: int, body: object) -> Instance:
        if status not in PATCH_STATUSES:
            raise expected_status(status, PATCH_STATUSES, "patching Stack Instance")
        return Instance.from_dict(body)


__all__ = [
    "COMMAND_STATUSES",
    "CommandOutcome",
    "DeleteOutcome",
    "InstanceCommander",
    "KubeconfigPayload",
]
