"""Render parameter and output values into display text.

Rendering never aborts on a single bad leaf: a secret that cannot be
resolved degrades to a placeholder and the failure is handed back to the
caller, which reports all of them once after the full document.
"""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import yaml

from .errors import HubError, PartialRenderError
from .models import Output, Parameter, ParameterValue, ValueKind, is_secret_kind
from .secret_resolver import SecretResolver, secret_value_ref

SECRET_MASK = "(secret)"
SECRET_UNAVAILABLE = "(secret unavailable)"
MULTILINE_DELIMITER = "~~"


@dataclass(frozen=True, slots=True)
class RenderedValue:
    """Display text for one value plus the leaf failure, if any."""

    text: str
    error: PartialRenderError | None = None

    @property
    def multiline(self) -> bool:
        return "\n" in self.text


@dataclass(slots=True)
class RenderErrors:
    """Leaf failures collected during one document traversal."""

    _errors: list[PartialRenderError] = field(default_factory=list)

    def add(self, error: PartialRenderError | None) -> None:
        if error is not None:
            self._errors.append(error)

    def extend(self, errors: RenderErrors) -> None:
        self._errors.extend(errors)

    def messages(self) -> list[str]:
        return [str(error) for error in self._errors]

    def __iter__(self) -> Iterator[PartialRenderError]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)


def format_plain(value: ParameterValue) -> str:
    """Return the display text of a non-secret value."""
    if value.kind is ValueKind.NULL:
        return ""
    if value.kind is ValueKind.BOOLEAN:
        return "true" if value.data else "false"
    if value.kind is ValueKind.NUMBER:
        number = value.data
        if isinstance(number, float) and number.is_integer():
            return str(int(number))
        return str(number)
    if value.kind is ValueKind.STRUCTURED:
        dumped = yaml.safe_dump(
            value.to_wire(),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
        return dumped.rstrip("\n")
    return str(value.data)


@dataclass(slots=True)
class ValueRenderer:
    """Turn typed, possibly secret, values into text."""

    secrets: SecretResolver | None = None

    def render(
        self,
        resource_path: str,
        kind: str,
        value: ParameterValue,
        show_secrets: bool,
        *,
        name: str = "",
    ) -> RenderedValue:
        """Render *value*; never raises for a leaf failure."""
        if not is_secret_kind(kind):
            return RenderedValue(format_plain(value))
        if not show_secrets:
            return RenderedValue(SECRET_MASK)
        label = name or kind
        if self.secrets is None:
            return RenderedValue(
                SECRET_UNAVAILABLE,
                PartialRenderError(resource_path, label, "no secret resolver configured"),
            )
        try:
            plaintext = self.secrets.resolve_secret(resource_path, secret_value_ref(value), kind)
        except HubError as exc:
            return RenderedValue(SECRET_UNAVAILABLE, PartialRenderError(resource_path, label, exc))
        return RenderedValue(plaintext)

    # Field lines --------------------------------------------------------
    def format_output(
        self,
        resource_path: str,
        output: Output,
        show_secrets: bool,
    ) -> RenderedValue:
        """Return the single display entry for *output*."""
        rendered = self.render(
            resource_path,
            output.kind,
            output.value,
            show_secrets,
            name=_qualified(output.component, output.name),
        )
        annotations = ""
        if output.brief:
            annotations += f" [{output.brief}]"
        if output.messenger:
            annotations += f" *{output.messenger}*"
        title = _title(output.kind, output.component, output.name)
        return RenderedValue(_entry(title, rendered.text, annotations), rendered.error)

    def format_parameter(
        self,
        resource_path: str,
        parameter: Parameter,
        show_secrets: bool,
    ) -> RenderedValue:
        """Return the single display entry for *parameter*."""
        rendered = self.render(
            resource_path,
            parameter.kind,
            parameter.value,
            show_secrets,
            name=_qualified(parameter.component, parameter.name),
        )
        annotations = ""
        if parameter.from_:
            annotations += f" (from {parameter.from_})"
        if parameter.origin:
            annotations += f" [{parameter.origin}]"
        if parameter.messenger:
            annotations += f" *{parameter.messenger}*"
        title = _title(parameter.kind, parameter.component, parameter.name)
        return RenderedValue(_entry(title, rendered.text, annotations), rendered.error)


def _qualified(component: str, name: str) -> str:
    return f"{component}:{name}" if component else name


def _title(kind: str, component: str, name: str) -> str:
    return f"{kind:>7} {_qualified(component, name)}:"


def _entry(title: str, text: str, annotations: str) -> str:
    if "\n" in text:
        body = text.removesuffix("\n")
        return f"{title} {MULTILINE_DELIMITER}{annotations} {body}\n{MULTILINE_DELIMITER}"
    return f"{title} {text}{annotations}"


__all__ = [
    "MULTILINE_DELIMITER",
    "RenderErrors",
    "RenderedValue",
    "SECRET_MASK",
    "SECRET_UNAVAILABLE",
    "ValueRenderer",
    "format_plain",
]
