"""Tests for value rendering."""
from __future__ import annotations

from hubctl.errors import SecretResolutionError
from hubctl.models import Output, Parameter, ParameterValue, ValueKind
from hubctl.render import (
    SECRET_MASK,
    SECRET_UNAVAILABLE,
    RenderErrors,
    ValueRenderer,
    format_plain,
)

RESOURCE = "hub/api/v1/instances/42"


class RecordingSecrets:
    """Secret collaborator that records lookups and can be told to fail."""

    def __init__(self, value: str = "s3cr3t", *, fail: bool = False) -> None:
        self.value = value
        self.fail = fail
        self.calls: list[tuple[str, str, str]] = []

    def resolve_secret(self, resource_path: str, value_ref: str, kind: str = "secret") -> str:
        self.calls.append((resource_path, value_ref, kind))
        if self.fail:
            raise SecretResolutionError("vault sealed")
        return self.value


def test_format_plain_scalars() -> None:
    """Scalars render naturally; integral floats drop the fraction."""
    assert format_plain(ParameterValue.from_wire("text")) == "text"
    assert format_plain(ParameterValue.from_wire(3.0)) == "3"
    assert format_plain(ParameterValue.from_wire(2.5)) == "2.5"
    assert format_plain(ParameterValue.from_wire(True)) == "true"
    assert format_plain(ParameterValue.from_wire(False)) == "false"
    assert format_plain(ParameterValue.from_wire(None)) == ""


def test_format_plain_structured_values_are_block_yaml() -> None:
    """Structured values become multi-line YAML."""
    text = format_plain(ParameterValue.from_wire({"a": 1, "b": [1, 2]}))

    assert text == "a: 1\nb:\n- 1\n- 2"


def test_secret_is_masked_without_contacting_collaborator() -> None:
    """show_secrets=False masks the value and never calls the resolver."""
    secrets = RecordingSecrets()
    renderer = ValueRenderer(secrets)

    rendered = renderer.render(RESOURCE, "secret", ParameterValue.from_wire("ref"), False)

    assert rendered.text == SECRET_MASK
    assert rendered.error is None
    assert secrets.calls == []


def test_secret_is_resolved_when_requested() -> None:
    """show_secrets=True fetches the plaintext by reference."""
    secrets = RecordingSecrets("hunter2")
    renderer = ValueRenderer(secrets)

    rendered = renderer.render(
        RESOURCE, "secret:password", ParameterValue.from_wire("ref-1"), True, name="db"
    )

    assert rendered.text == "hunter2"
    assert secrets.calls == [(RESOURCE, "ref-1", "secret:password")]


def test_secret_failure_yields_placeholder_and_error() -> None:
    """A failing lookup degrades to a placeholder and returns the error."""
    renderer = ValueRenderer(RecordingSecrets(fail=True))

    rendered = renderer.render(RESOURCE, "secret", ParameterValue.from_wire("ref"), True, name="db")

    assert rendered.text == SECRET_UNAVAILABLE
    assert rendered.error is not None
    assert str(rendered.error) == f"Unable to render `db` of {RESOURCE}: vault sealed"


def test_secret_without_reference_is_a_partial_failure() -> None:
    """A secret value carrying no reference is reported, not raised."""
    renderer = ValueRenderer(RecordingSecrets())

    rendered = renderer.render(RESOURCE, "secret", ParameterValue(ValueKind.NULL), True)

    assert rendered.text == SECRET_UNAVAILABLE
    assert rendered.error is not None


def test_format_parameter_single_line_with_annotations() -> None:
    """Parameters show kind, qualified name, value and annotations."""
    parameter = Parameter(
        name="replicas",
        kind="int",
        value=ParameterValue.from_wire(3),
        component="app",
        from_="env",
        origin="default",
        messenger="ops",
    )

    rendered = ValueRenderer().format_parameter(RESOURCE, parameter, False)

    assert rendered.text == "    int app:replicas: 3 (from env) [default] *ops*"


def test_format_output_multiline_uses_delimiters() -> None:
    """Multi-line values open after the delimiter and close on their own line."""
    output = Output(
        name="config",
        kind="yaml",
        value=ParameterValue.from_wire({"a": 1, "b": 2}),
        brief="Rendered config",
    )

    rendered = ValueRenderer().format_output(RESOURCE, output, False)

    assert rendered.text == "   yaml config: ~~ [Rendered config] a: 1\nb: 2\n~~"


def test_format_parameter_multiline_without_annotations() -> None:
    """Without annotations the first value line follows the delimiter directly."""
    parameter = Parameter(name="hosts", kind="", value=ParameterValue.from_wire(["a", "b"]))

    rendered = ValueRenderer().format_parameter(RESOURCE, parameter, False)

    assert rendered.text == "        hosts: ~~ - a\n- b\n~~"


def test_render_errors_collects_only_failures() -> None:
    """None entries are ignored; messages keep insertion order."""
    renderer = ValueRenderer(RecordingSecrets(fail=True))
    errors = RenderErrors()

    errors.add(None)
    errors.add(renderer.render(RESOURCE, "secret", ParameterValue.from_wire("a"), True, name="a").error)
    errors.add(renderer.render(RESOURCE, "secret", ParameterValue.from_wire("b"), True, name="b").error)

    assert len(errors) == 2
    assert [error.name for error in errors] == ["a", "b"]
