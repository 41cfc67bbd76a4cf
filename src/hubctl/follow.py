"""Log-follow collaborator invoked after ``deploy --wait``.

Only the entry/exit contract matters to the commander: ``follow(domains)``
blocks until the remote job settles and returns the exit status the command
should report. :class:`PollingLogFollower` approximates a tail by polling the
instance and printing phase transitions of the job that was just issued.
"""
from __future__ import annotations

import time
from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from rich.console import Console

from .errors import NotFoundError
from .exit_codes import ExitCode
from .models import InflightOperation
from .resolver import SelectorResolver

SUCCESS_STATUSES = frozenset({"success", "succeeded", "completed"})
FAILURE_STATUSES = frozenset({"failed", "failure", "error", "canceled", "cancelled"})


class LogFollower(Protocol):
    """Follow remote job progress for the given instance domains.

    ``job_id`` names the operation to wait for. Without one, operations whose
    ids are in ``previous`` predate the request and are never followed.
    """

    def follow(
        self,
        domains: Sequence[str],
        *,
        job_id: str = "",
        previous: Collection[str] = (),
    ) -> int:
        ...


def select_operation(
    operations: Sequence[InflightOperation],
    *,
    job_id: str = "",
    previous: Collection[str] = (),
) -> InflightOperation | None:
    """Return the operation a waiting command tracks, or ``None`` if not started yet."""
    if job_id:
        return next((operation for operation in operations if operation.id == job_id), None)
    fresh = [operation for operation in operations if operation.id not in previous]
    if not fresh:
        return None
    stamped = [operation for operation in fresh if operation.timestamp is not None]
    if not stamped:
        return fresh[-1]
    return max(stamped, key=lambda operation: operation.timestamp)  # type: ignore[arg-type,return-value]


@dataclass(slots=True)
class PollingLogFollower:
    """Poll instances until the issued operation is terminal."""

    resolver: SelectorResolver
    console: Console
    poll_interval: float = 5.0
    sleep: Callable[[float], None] = field(default=time.sleep)

    def follow(
        self,
        domains: Sequence[str],
        *,
        job_id: str = "",
        previous: Collection[str] = (),
    ) -> int:
        worst = ExitCode.OK
        try:
            for domain in domains:
                status = self._follow_one(domain, job_id, previous)
                if status != ExitCode.OK:
                    worst = status
        except KeyboardInterrupt:
            self.console.print("[yellow]Interrupted; the remote operation keeps running.[/yellow]")
            return int(ExitCode.INTERRUPTED)
        return int(worst)

    def _follow_one(self, domain: str, job_id: str, previous: Collection[str]) -> ExitCode:
        seen: set[tuple[str, str]] = set()
        while True:
            # fresh lookup every round; the selector cache would pin the first read
            matches = self.resolver.lookup(domain)
            if not matches:
                raise NotFoundError(domain)
            operation = select_operation(
                matches[0].inflight_operations, job_id=job_id, previous=previous
            )
            if operation is not None:
                for phase in operation.phases:
                    key = (phase.phase, phase.status)
                    if key not in seen:
                        seen.add(key)
                        self.console.out(f"{domain}: {phase.phase} - {phase.status}", highlight=False)
                status = operation.status.lower()
                if status in SUCCESS_STATUSES:
                    self.console.out(f"{domain}: {operation.operation} {operation.status}", highlight=False)
                    return ExitCode.OK
                if status in FAILURE_STATUSES:
                    self.console.print(
                        f"[red]{domain}: {operation.operation} {operation.status}[/red]"
                    )
                    return ExitCode.FAILURE
            self.sleep(self.poll_interval)


__all__ = [
    "FAILURE_STATUSES",
    "LogFollower",
    "PollingLogFollower",
    "SUCCESS_STATUSES",
    "select_operation",
]
