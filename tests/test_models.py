"""Tests for the instance data model."""
from __future__ import annotations

from datetime import timedelta

import pytest

from hubctl.errors import InstanceDecodeError
from hubctl.models import (
    DeployResponse,
    FilesDescriptor,
    Instance,
    InstanceRequest,
    ParameterValue,
    ValueKind,
    is_secret_kind,
)


def test_parameter_value_classification() -> None:
    """Wire values map onto tagged kinds; booleans are not numbers."""
    assert ParameterValue.from_wire(None).kind is ValueKind.NULL
    assert ParameterValue.from_wire(True).kind is ValueKind.BOOLEAN
    assert ParameterValue.from_wire(1).kind is ValueKind.NUMBER
    assert ParameterValue.from_wire(1.5).kind is ValueKind.NUMBER
    assert ParameterValue.from_wire("x").kind is ValueKind.STRING
    assert ParameterValue.from_wire({"a": 1}).kind is ValueKind.STRUCTURED
    assert ParameterValue.from_wire([1, 2]).kind is ValueKind.STRUCTURED


def test_secret_kind_matching() -> None:
    """``secret`` and ``secret:<sub>`` kinds are secrets."""
    assert is_secret_kind("secret")
    assert is_secret_kind("secret:password")
    assert not is_secret_kind("secrets")
    assert not is_secret_kind("")


def test_instance_decodes_numeric_id(make_instance) -> None:
    """Numeric ids decode to strings."""
    instance = Instance.from_dict(make_instance(id=42))

    assert instance.id == "42"
    assert instance.environment.name == "dev"
    assert instance.git_remote.template_ref == "main"
    assert instance.status.template is not None
    assert instance.status.template.short_commit == "abcdef1"
    assert instance.parameters[2].is_secret


def test_instance_decode_rejects_wrong_types(make_instance) -> None:
    """Type mismatches raise InstanceDecodeError naming the field."""
    with pytest.raises(InstanceDecodeError, match="tags"):
        Instance.from_dict(make_instance(tags="web"))
    with pytest.raises(InstanceDecodeError):
        Instance.from_dict("not an object")


def test_instance_to_dict_omits_empty_fields(make_instance) -> None:
    """Encoded instances drop empty collections and keep camelCase keys."""
    encoded = Instance.from_dict(make_instance(verbs=[], provides=None)).to_dict()

    assert "verbs" not in encoded
    assert "provides" not in encoded
    assert encoded["componentsEnabled"] == ["ingress", "app"]
    assert encoded["gitRemote"] == {
        "public": "https://git.example.com/app.git",
        "template": {"ref": "main"},
    }


def test_instance_request_requires_core_fields() -> None:
    """Create requests need a name, environment and template."""
    with pytest.raises(InstanceDecodeError, match="template"):
        InstanceRequest.from_dict({"name": "app", "environment": "1"})

    request = InstanceRequest.from_dict({"name": "app", "environment": 1, "template": 2})
    assert request.to_dict() == {"name": "app", "environment": "1", "template": "2"}


def test_deploy_response_job_id() -> None:
    """The job id is read from ``jobId``."""
    assert DeployResponse.from_dict({"jobId": 17}).job_id == "17"
    assert DeployResponse.from_dict({}).job_id == ""


def test_state_files_descriptor(make_instance) -> None:
    """State files are classified as object-store or filesystem targets."""
    descriptor = Instance.from_dict(make_instance()).state_files_descriptor()

    assert descriptor.label == "state"
    assert [target.kind for target in descriptor.files] == ["object-store", "fs"]
    assert descriptor.paths("fs") == ["/var/lib/hub/app.state"]
    assert FilesDescriptor.from_paths("empty", []).files == ()


def test_timestamp_without_offset_is_utc(make_instance) -> None:
    """Operation timestamps always carry a timezone."""
    operation = {"id": "op", "timestamp": "2024-01-01T00:00:00"}
    instance = Instance.from_dict(make_instance(inflightOperations=[operation]))

    stamp = instance.inflight_operations[0].timestamp
    assert stamp is not None
    assert stamp.tzinfo is not None
    assert stamp.utcoffset() == timedelta(0)
