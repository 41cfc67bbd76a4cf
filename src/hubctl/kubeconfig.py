"""Write a stack instance kubeconfig to the operator's chosen destination."""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from .errors import FatalIOError

STDOUT_TARGET = "-"


def default_filename(domain: str) -> str:
    """Return ``kubeconfig-{domain}.yaml``."""
    return f"kubeconfig-{domain}.yaml"


@dataclass(frozen=True, slots=True)
class KubeconfigTarget:
    """Resolved destination: a filesystem path or standard output."""

    path: Path | None

    @property
    def is_stdout(self) -> bool:
        return self.path is None

    def __str__(self) -> str:
        return STDOUT_TARGET if self.path is None else str(self.path)


def resolve_target(filename: str | None, domain: str, *, force: bool = False) -> KubeconfigTarget:
    """Apply the output rules to *filename*.

    An empty name falls back to :func:`default_filename`, ``-`` means standard
    output, an existing directory receives ``kubeconfig`` inside it, and an
    existing regular file is only replaced when *force* is set.
    """
    name = filename or default_filename(domain)
    if name == STDOUT_TARGET:
        return KubeconfigTarget(None)
    path = Path(name).expanduser()
    if path.is_dir():
        return KubeconfigTarget(path / "kubeconfig")
    if path.exists() and not force:
        raise FatalIOError(f'Kubeconfig "{path}" exists, use --force / -f to overwrite')
    return KubeconfigTarget(path)


def write_kubeconfig(
    body: bytes,
    target: KubeconfigTarget,
    *,
    stdout: BinaryIO | None = None,
) -> None:
    """Write *body* to *target*; failures raise :class:`FatalIOError`."""
    if target.path is None:
        stream = stdout if stdout is not None else sys.stdout.buffer
        stream.write(body)
        stream.flush()
        return
    try:
        with target.path.open("wb") as handle:
            written = handle.write(body)
            handle.flush()
            os.fsync(handle.fileno())
    except OSError as exc:
        raise FatalIOError(f"Unable to write {target.path}: {exc}") from exc
    if written != len(body):
        raise FatalIOError(
            f"Unable to write {target.path}: wrote {written} out of {len(body)} bytes"
        )


__all__ = [
    "KubeconfigTarget",
    "STDOUT_TARGET",
    "default_filename",
    "resolve_target",
    "write_kubeconfig",
]
