"""Error taxonomy shared by the resolver, commander and renderer.

Every failure a command can surface derives from :class:`HubError` and
carries the exit code the CLI dispatcher reports for it. Render-time leaf
failures (:class:`PartialRenderError`) are collected rather than raised.
"""
from __future__ import annotations

from .exit_codes import ExitCode


class HubError(RuntimeError):
    """Base class for errors surfaced to the command boundary."""

    exit_code: ExitCode = ExitCode.FAILURE


class NotFoundError(HubError):
    """Raised when a selector matches no stack instance."""

    exit_code = ExitCode.VALIDATION

    def __init__(self, selector: str) -> None:
        """Build the canonical not-found message for *selector*."""
        super().__init__(f'No Stack Instance "{selector}" found')
        self.selector = selector


class AmbiguousError(HubError):
    """Raised when a domain selector matches more than one instance."""

    exit_code = ExitCode.VALIDATION

    def __init__(self, domain: str, count: int) -> None:
        """Build the ambiguity message for *domain*."""
        super().__init__(
            f'More than one Stack Instance returned by domain "{domain}" ({count} matches)'
        )
        self.domain = domain
        self.count = count


class ProtocolError(HubError):
    """Raised on an unexpected status code or undecodable payload."""

    exit_code = ExitCode.PROVIDER


class TransportError(ProtocolError):
    """Raised when the HTTP exchange itself fails or returns invalid JSON."""


class InstanceDecodeError(ProtocolError):
    """Raised when a response body does not match the instance model."""


class FatalIOError(HubError):
    """Raised when a local output file cannot be created or written."""

    exit_code = ExitCode.ENVIRONMENT


class SecretResolutionError(HubError):
    """Raised by the secret collaborator when plaintext cannot be recovered."""


class PartialRenderError(HubError):
    """A single value leaf that failed to render.

    These are never raised out of the renderer; they are accumulated and
    printed once after the complete document.
    """

    def __init__(self, resource_path: str, name: str, cause: BaseException | str) -> None:
        """Record the leaf *name* under *resource_path* that failed with *cause*."""
        super().__init__(f"Unable to render `{name}` of {resource_path}: {cause}")
        self.resource_path = resource_path
        self.name = name
        self.cause = cause


def expected_status(
    received: int,
    expected: tuple[int, ...],
    action: str,
) -> ProtocolError:
    """Return a :class:`ProtocolError` describing an unexpected HTTP status."""
    if len(expected) == 1:
        wanted = str(expected[0])
    else:
        wanted = "[" + ", ".join(str(code) for code in expected) + "]"
    return ProtocolError(f"Got {received} HTTP {action}, expected {wanted} HTTP")


__all__ = [
    "AmbiguousError",
    "FatalIOError",
    "HubError",
    "InstanceDecodeError",
    "NotFoundError",
    "PartialRenderError",
    "ProtocolError",
    "SecretResolutionError",
    "TransportError",
    "expected_status",
]
