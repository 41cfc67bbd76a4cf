"""Typed data model for Hub stack instances.

Wire payloads use camelCase keys. Decoders treat missing or ``null`` fields as
empty and raise :class:`~hubctl.errors.InstanceDecodeError` when a field has
the wrong JSON type, so callers can tell a malformed body apart from an
unexpected status code.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .errors import InstanceDecodeError

SECRET_KIND = "secret"


class ValueKind(str, Enum):
    """Discriminant for :class:`ParameterValue`."""

    NULL = "null"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRUCTURED = "structured"


@dataclass(frozen=True, slots=True)
class ParameterValue:
    """Polymorphic parameter/output value with an explicit kind."""

    kind: ValueKind
    data: Any = None

    @classmethod
    def from_wire(cls, value: object) -> ParameterValue:
        """Classify a decoded JSON value."""
        if value is None:
            return cls(ValueKind.NULL)
        # bool is checked before numbers because it subclasses int
        if isinstance(value, bool):
            return cls(ValueKind.BOOLEAN, value)
        if isinstance(value, (int, float)):
            return cls(ValueKind.NUMBER, value)
        if isinstance(value, str):
            return cls(ValueKind.STRING, value)
        if isinstance(value, (Mapping, list, tuple)):
            return cls(ValueKind.STRUCTURED, value)
        raise InstanceDecodeError(f"cannot decode value of type {type(value).__name__}")

    def to_wire(self) -> object:
        """Return the JSON value this variant was decoded from."""
        if self.kind is ValueKind.STRUCTURED and isinstance(self.data, tuple):
            return list(self.data)
        return self.data

    @property
    def is_null(self) -> bool:
        """Return ``True`` when no value was supplied."""
        return self.kind is ValueKind.NULL


def is_secret_kind(kind: str) -> bool:
    """Return ``True`` for ``secret`` and ``secret:<subkind>`` kinds."""
    return kind == SECRET_KIND or kind.startswith(f"{SECRET_KIND}:")


# ----------------------------------------------------------------------
# Decoding helpers
# ----------------------------------------------------------------------
def _as_dict(value: object, label: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InstanceDecodeError(
            f"cannot decode {label}: expected an object, got {type(value).__name__}"
        )
    return {str(key): item for key, item in value.items()}


def _as_list(value: object, label: str) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise InstanceDecodeError(
            f"cannot decode {label}: expected an array, got {type(value).__name__}"
        )
    return list(value)


def _str(value: object, label: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        raise InstanceDecodeError(f"cannot decode {label}: expected a string, got bool")
    if isinstance(value, str):
        return value
    raise InstanceDecodeError(
        f"cannot decode {label}: expected a string, got {type(value).__name__}"
    )


def _identifier(value: object, label: str) -> str:
    # the API returns ids as strings, older deployments as integers
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return _str(value, label)


def _str_list(value: object, label: str) -> list[str]:
    return [_str(item, f"{label}[{index}]") for index, item in enumerate(_as_list(value, label))]


def _provides(value: object, label: str) -> dict[str, list[str]]:
    return {
        key: _str_list(item, f"{label}.{key}")
        for key, item in _as_dict(value, label).items()
    }


def _timestamp(value: object, label: str) -> datetime | None:
    text = _str(value, label)
    if not text:
        return None
    try:
        stamp = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InstanceDecodeError(f"cannot decode {label}: invalid timestamp {text!r}") from exc
    if stamp.tzinfo is None:
        # the Hub speaks RFC 3339; a missing offset is read as UTC
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


def _put(payload: dict[str, object], key: str, value: object) -> None:
    """Set *key* when *value* is non-empty (JSON ``omitempty``)."""
    if value in (None, "", [], {}):
        return
    payload[key] = value


# ----------------------------------------------------------------------
# References
# ----------------------------------------------------------------------
@dataclass(slots=True)
class EnvironmentRef:
    """Reference to the environment hosting an instance."""

    id: str = ""
    name: str = ""
    domain: str = ""

    @classmethod
    def from_dict(cls, raw: object, label: str = "environment") -> EnvironmentRef:
        data = _as_dict(raw, label)
        return cls(
            id=_identifier(data.get("id"), f"{label}.id"),
            name=_str(data.get("name"), f"{label}.name"),
            domain=_str(data.get("domain"), f"{label}.domain"),
        )

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name, "domain": self.domain}


@dataclass(slots=True)
class StackRef:
    """Reference to a base stack or stack template."""

    id: str = ""
    name: str = ""

    @classmethod
    def from_dict(cls, raw: object, label: str) -> StackRef:
        data = _as_dict(raw, label)
        return cls(
            id=_identifier(data.get("id"), f"{label}.id"),
            name=_str(data.get("name"), f"{label}.name"),
        )

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name}


@dataclass(slots=True)
class PlatformRef:
    """Reference to the platform instance an overlay is deployed onto."""

    id: str = ""
    name: str = ""
    domain: str = ""
    state_files: list[str] = field(default_factory=list)
    provides: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: object, label: str = "platform") -> PlatformRef:
        data = _as_dict(raw, label)
        return cls(
            id=_identifier(data.get("id"), f"{label}.id"),
            name=_str(data.get("name"), f"{label}.name"),
            domain=_str(data.get("domain"), f"{label}.domain"),
            state_files=_str_list(data.get("stateFiles"), f"{label}.stateFiles"),
            provides=_provides(data.get("provides"), f"{label}.provides"),
        )

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"id": self.id, "name": self.name, "domain": self.domain}
        _put(payload, "stateFiles", list(self.state_files))
        _put(payload, "provides", {key: list(value) for key, value in self.provides.items()})
        return payload


@dataclass(slots=True)
class GitRemote:
    """Read-only git coordinates of an instance.

    ``public`` is server-assigned; only the template and k8s refs may be
    written back.
    """

    public: str = ""
    template_ref: str | None = None
    k8s_ref: str | None = None

    @classmethod
    def from_dict(cls, raw: object, label: str = "gitRemote") -> GitRemote:
        data = _as_dict(raw, label)
        template = data.get("template")
        k8s = data.get("k8s")
        return cls(
            public=_str(data.get("public"), f"{label}.public"),
            template_ref=(
                _str(_as_dict(template, f"{label}.template").get("ref"), f"{label}.template.ref")
                if template is not None
                else None
            ),
            k8s_ref=(
                _str(_as_dict(k8s, f"{label}.k8s").get("ref"), f"{label}.k8s.ref")
                if k8s is not None
                else None
            ),
        )

    @property
    def has_refs(self) -> bool:
        """Return ``True`` when a writable template or k8s ref is populated."""
        return bool(self.template_ref) or bool(self.k8s_ref)

    def to_dict(self, *, include_public: bool = True) -> dict[str, object]:
        payload: dict[str, object] = {}
        if include_public:
            _put(payload, "public", self.public)
        if self.template_ref:
            payload["template"] = {"ref": self.template_ref}
        if self.k8s_ref:
            payload["k8s"] = {"ref": self.k8s_ref}
        return payload


# ----------------------------------------------------------------------
# Parameters and outputs
# ----------------------------------------------------------------------
@dataclass(slots=True)
class Parameter:
    """Named input value of an instance or one of its components."""

    name: str
    kind: str = ""
    value: ParameterValue = field(default_factory=lambda: ParameterValue(ValueKind.NULL))
    from_: str = ""
    component: str = ""
    origin: str = ""
    messenger: str = ""

    @classmethod
    def from_dict(cls, raw: object, label: str = "parameter") -> Parameter:
        data = _as_dict(raw, label)
        try:
            value = ParameterValue.from_wire(data.get("value"))
        except InstanceDecodeError as exc:
            raise InstanceDecodeError(f"cannot decode {label}.value: {exc}") from exc
        return cls(
            name=_str(data.get("name"), f"{label}.name"),
            kind=_str(data.get("kind"), f"{label}.kind"),
            value=value,
            from_=_str(data.get("from"), f"{label}.from"),
            component=_str(data.get("component"), f"{label}.component"),
            origin=_str(data.get("origin"), f"{label}.origin"),
            messenger=_str(data.get("messenger"), f"{label}.messenger"),
        )

    @property
    def is_secret(self) -> bool:
        return is_secret_kind(self.kind)

    def sort_key(self) -> tuple[str, str]:
        """Composite ordering key: component first, then name."""
        return (self.component, self.name)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"name": self.name}
        _put(payload, "kind", self.kind)
        if not self.value.is_null:
            payload["value"] = self.value.to_wire()
        _put(payload, "from", self.from_)
        _put(payload, "component", self.component)
        _put(payload, "origin", self.origin)
        _put(payload, "messenger", self.messenger)
        return payload


@dataclass(slots=True)
class Output:
    """Named value produced by a deployment."""

    name: str
    kind: str = ""
    value: ParameterValue = field(default_factory=lambda: ParameterValue(ValueKind.NULL))
    component: str = ""
    brief: str = ""
    messenger: str = ""

    @classmethod
    def from_dict(cls, raw: object, label: str = "output") -> Output:
        data = _as_dict(raw, label)
        try:
            value = ParameterValue.from_wire(data.get("value"))
        except InstanceDecodeError as exc:
            raise InstanceDecodeError(f"cannot decode {label}.value: {exc}") from exc
        return cls(
            name=_str(data.get("name"), f"{label}.name"),
            kind=_str(data.get("kind"), f"{label}.kind"),
            value=value,
            component=_str(data.get("component"), f"{label}.component"),
            brief=_str(data.get("brief"), f"{label}.brief"),
            messenger=_str(data.get("messenger"), f"{label}.messenger"),
        )

    @property
    def is_secret(self) -> bool:
        return is_secret_kind(self.kind)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"name": self.name}
        _put(payload, "component", self.component)
        _put(payload, "kind", self.kind)
        payload["value"] = self.value.to_wire()
        _put(payload, "brief", self.brief)
        _put(payload, "messenger", self.messenger)
        return payload


# ----------------------------------------------------------------------
# Status
# ----------------------------------------------------------------------
@dataclass(slots=True)
class TemplateStatus:
    """Git commit that was last deployed for the template or k8s sources."""

    commit: str = ""
    ref: str = ""
    date: str = ""
    author: str = ""
    subject: str = ""

    @classmethod
    def from_dict(cls, raw: object, label: str) -> TemplateStatus:
        data = _as_dict(raw, label)
        return cls(
            commit=_str(data.get("commit"), f"{label}.commit"),
            ref=_str(data.get("ref"), f"{label}.ref"),
            date=_str(data.get("date"), f"{label}.date"),
            author=_str(data.get("author"), f"{label}.author"),
            subject=_str(data.get("subject"), f"{label}.subject"),
        )

    @property
    def short_commit(self) -> str:
        return self.commit[:7]

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {}
        for key in ("commit", "ref", "date", "author", "subject"):
            _put(payload, key, getattr(self, key))
        return payload


@dataclass(slots=True)
class ComponentStatus:
    """Deployment status of a single stack component."""

    name: str
    status: str = ""
    version: str = ""
    message: str = ""
    outputs: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: object, label: str) -> ComponentStatus:
        data = _as_dict(raw, label)
        outputs_raw = _as_dict(data.get("outputs"), f"{label}.outputs")
        return cls(
            name=_str(data.get("name"), f"{label}.name"),
            status=_str(data.get("status"), f"{label}.status"),
            version=_str(data.get("version"), f"{label}.version"),
            message=_str(data.get("message"), f"{label}.message"),
            outputs={
                key: "" if value is None else str(value) for key, value in outputs_raw.items()
            },
        )

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"name": self.name, "status": self.status}
        _put(payload, "version", self.version)
        _put(payload, "message", self.message)
        _put(payload, "outputs", dict(self.outputs))
        return payload


@dataclass(slots=True)
class InstanceStatus:
    """Aggregate deployment status of an instance."""

    status: str = ""
    template: TemplateStatus | None = None
    k8s: TemplateStatus | None = None
    components: list[ComponentStatus] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: object, label: str = "status") -> InstanceStatus:
        data = _as_dict(raw, label)
        template = data.get("template")
        k8s = data.get("k8s")
        return cls(
            status=_str(data.get("status"), f"{label}.status"),
            template=(
                TemplateStatus.from_dict(template, f"{label}.template")
                if template is not None
                else None
            ),
            k8s=TemplateStatus.from_dict(k8s, f"{label}.k8s") if k8s is not None else None,
            components=[
                ComponentStatus.from_dict(item, f"{label}.components[{index}]")
                for index, item in enumerate(_as_list(data.get("components"), f"{label}.components"))
            ],
        )

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {}
        _put(payload, "status", self.status)
        if self.template is not None:
            payload["template"] = self.template.to_dict()
        if self.k8s is not None:
            payload["k8s"] = self.k8s.to_dict()
        _put(payload, "components", [component.to_dict() for component in self.components])
        return payload


@dataclass(slots=True)
class LifecyclePhase:
    """One ordered step of an inflight operation."""

    phase: str
    status: str = ""

    def to_dict(self) -> dict[str, object]:
        return {"phase": self.phase, "status": self.status}


@dataclass(slots=True)
class InflightOperation:
    """Asynchronous remote job (deploy, undeploy, ...) tracked by the Hub."""

    id: str
    operation: str = ""
    timestamp: datetime | None = None
    status: str = ""
    options: dict[str, Any] = field(default_factory=dict)
    description: str = ""
    initiator: str = ""
    logs: str = ""
    platform_domain: str = ""
    phases: list[LifecyclePhase] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: object, label: str) -> InflightOperation:
        data = _as_dict(raw, label)
        phases: list[LifecyclePhase] = []
        for index, item in enumerate(_as_list(data.get("phases"), f"{label}.phases")):
            phase = _as_dict(item, f"{label}.phases[{index}]")
            phases.append(
                LifecyclePhase(
                    phase=_str(phase.get("phase"), f"{label}.phases[{index}].phase"),
                    status=_str(phase.get("status"), f"{label}.phases[{index}].status"),
                )
            )
        return cls(
            id=_identifier(data.get("id"), f"{label}.id"),
            operation=_str(data.get("operation"), f"{label}.operation"),
            timestamp=_timestamp(data.get("timestamp"), f"{label}.timestamp"),
            status=_str(data.get("status"), f"{label}.status"),
            options=_as_dict(data.get("options"), f"{label}.options"),
            description=_str(data.get("description"), f"{label}.description"),
            initiator=_str(data.get("initiator"), f"{label}.initiator"),
            logs=_str(data.get("logs"), f"{label}.logs"),
            platform_domain=_str(data.get("platformDomain"), f"{label}.platformDomain"),
            phases=phases,
        )

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"id": self.id, "operation": self.operation}
        if self.timestamp is not None:
            payload["timestamp"] = self.timestamp.isoformat()
        _put(payload, "status", self.status)
        _put(payload, "options", dict(self.options))
        _put(payload, "description", self.description)
        _put(payload, "initiator", self.initiator)
        _put(payload, "logs", self.logs)
        _put(payload, "platformDomain", self.platform_domain)
        _put(payload, "phases", [phase.to_dict() for phase in self.phases])
        return payload


# ----------------------------------------------------------------------
# Instance
# ----------------------------------------------------------------------
@dataclass(slots=True)
class Instance:
    """A deployed realization of a stack template within an environment."""

    id: str
    domain: str = ""
    name: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    environment: EnvironmentRef = field(default_factory=EnvironmentRef)
    stack: StackRef = field(default_factory=StackRef)
    template: StackRef = field(default_factory=StackRef)
    platform: PlatformRef | None = None
    components_enabled: list[str] = field(default_factory=list)
    verbs: list[str] = field(default_factory=list)
    git_remote: GitRemote = field(default_factory=GitRemote)
    parameters: list[Parameter] = field(default_factory=list)
    outputs: list[Output] = field(default_factory=list)
    provides: dict[str, list[str]] = field(default_factory=dict)
    state_files: list[str] = field(default_factory=list)
    status: InstanceStatus = field(default_factory=InstanceStatus)
    inflight_operations: list[InflightOperation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: object) -> Instance:
        """Decode an instance from a wire payload."""
        data = _as_dict(raw, "instance")
        platform = data.get("platform")
        return cls(
            id=_identifier(data.get("id"), "id"),
            domain=_str(data.get("domain"), "domain"),
            name=_str(data.get("name"), "name"),
            description=_str(data.get("description"), "description"),
            tags=_str_list(data.get("tags"), "tags"),
            environment=EnvironmentRef.from_dict(data.get("environment")),
            stack=StackRef.from_dict(data.get("stack"), "stack"),
            template=StackRef.from_dict(data.get("template"), "template"),
            platform=PlatformRef.from_dict(platform) if platform is not None else None,
            components_enabled=_str_list(data.get("componentsEnabled"), "componentsEnabled"),
            verbs=_str_list(data.get("verbs"), "verbs"),
            git_remote=GitRemote.from_dict(data.get("gitRemote")),
            parameters=[
                Parameter.from_dict(item, f"parameters[{index}]")
                for index, item in enumerate(_as_list(data.get("parameters"), "parameters"))
            ],
            outputs=[
                Output.from_dict(item, f"outputs[{index}]")
                for index, item in enumerate(_as_list(data.get("outputs"), "outputs"))
            ],
            provides=_provides(data.get("provides"), "provides"),
            state_files=_str_list(data.get("stateFiles"), "stateFiles"),
            status=InstanceStatus.from_dict(data.get("status")),
            inflight_operations=[
                InflightOperation.from_dict(item, f"inflightOperations[{index}]")
                for index, item in enumerate(
                    _as_list(data.get("inflightOperations"), "inflightOperations")
                )
            ],
        )

    @classmethod
    def list_from_payload(cls, raw: object) -> list[Instance]:
        """Decode a list response."""
        return [cls.from_dict(item) for item in _as_list(raw, "instances")]

    def to_dict(self) -> dict[str, object]:
        """Return the wire representation (used for ``--json`` output)."""
        payload: dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "domain": self.domain,
        }
        _put(payload, "description", self.description)
        _put(payload, "tags", list(self.tags))
        payload["environment"] = self.environment.to_dict()
        payload["stack"] = self.stack.to_dict()
        payload["template"] = self.template.to_dict()
        if self.platform is not None:
            payload["platform"] = self.platform.to_dict()
        _put(payload, "componentsEnabled", list(self.components_enabled))
        _put(payload, "verbs", list(self.verbs))
        _put(payload, "gitRemote", self.git_remote.to_dict())
        _put(payload, "parameters", [parameter.to_dict() for parameter in self.parameters])
        _put(payload, "outputs", [output.to_dict() for output in self.outputs])
        _put(payload, "provides", {key: list(value) for key, value in self.provides.items()})
        _put(payload, "stateFiles", list(self.state_files))
        _put(payload, "status", self.status.to_dict())
        _put(
            payload,
            "inflightOperations",
            [operation.to_dict() for operation in self.inflight_operations],
        )
        return payload

    def state_files_descriptor(self) -> FilesDescriptor:
        """Describe the instance state files for persistence collaborators."""
        return FilesDescriptor.from_paths("state", self.state_files)


# ----------------------------------------------------------------------
# Requests
# ----------------------------------------------------------------------
@dataclass(slots=True)
class InstanceRequest:
    """Payload for creating a stack instance."""

    name: str
    environment: str
    template: str
    description: str = ""
    tags: list[str] = field(default_factory=list)
    platform: str = ""
    components_enabled: list[str] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: object) -> InstanceRequest:
        data = _as_dict(raw, "request")
        missing = [key for key in ("name", "environment", "template") if not data.get(key)]
        if missing:
            raise InstanceDecodeError(
                "cannot decode instance request: missing " + ", ".join(missing)
            )
        return cls(
            name=_str(data.get("name"), "name"),
            environment=_identifier(data.get("environment"), "environment"),
            template=_identifier(data.get("template"), "template"),
            description=_str(data.get("description"), "description"),
            tags=_str_list(data.get("tags"), "tags"),
            platform=_identifier(data.get("platform"), "platform"),
            components_enabled=_str_list(data.get("componentsEnabled"), "componentsEnabled"),
            parameters=[
                Parameter.from_dict(item, f"parameters[{index}]")
                for index, item in enumerate(_as_list(data.get("parameters"), "parameters"))
            ],
        )

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "name": self.name,
            "environment": self.environment,
            "template": self.template,
        }
        _put(payload, "description", self.description)
        _put(payload, "tags", list(self.tags))
        _put(payload, "platform", self.platform)
        _put(payload, "componentsEnabled", list(self.components_enabled))
        _put(payload, "parameters", [parameter.to_dict() for parameter in self.parameters])
        return payload


@dataclass(slots=True)
class InstancePatch:
    """Merge or replace update for a stack instance.

    ``None`` means "not part of this patch"; only populated fields are encoded.
    """

    components_enabled: list[str] | None = None
    parameters: list[Parameter] | None = None
    state_files: list[str] | None = None
    status: InstanceStatus | None = None
    inflight_operations: list[InflightOperation] | None = None
    outputs: list[Output] | None = None
    provides: dict[str, list[str]] | None = None
    git_remote: GitRemote | None = None

    @classmethod
    def from_dict(cls, raw: object) -> InstancePatch:
        data = _as_dict(raw, "patch")
        patch = cls()
        if data.get("componentsEnabled") is not None:
            patch.components_enabled = _str_list(data["componentsEnabled"], "componentsEnabled")
        if data.get("parameters") is not None:
            patch.parameters = [
                Parameter.from_dict(item, f"parameters[{index}]")
                for index, item in enumerate(_as_list(data["parameters"], "parameters"))
            ]
        if data.get("stateFiles") is not None:
            patch.state_files = _str_list(data["stateFiles"], "stateFiles")
        if data.get("status") is not None:
            patch.status = InstanceStatus.from_dict(data["status"])
        if data.get("inflightOperations") is not None:
            patch.inflight_operations = [
                InflightOperation.from_dict(item, f"inflightOperations[{index}]")
                for index, item in enumerate(
                    _as_list(data["inflightOperations"], "inflightOperations")
                )
            ]
        if data.get("outputs") is not None:
            patch.outputs = [
                Output.from_dict(item, f"outputs[{index}]")
                for index, item in enumerate(_as_list(data["outputs"], "outputs"))
            ]
        if data.get("provides") is not None:
            patch.provides = _provides(data["provides"], "provides")
        if data.get("gitRemote") is not None:
            patch.git_remote = GitRemote.from_dict(data["gitRemote"])
        return patch

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {}
        if self.components_enabled:
            payload["componentsEnabled"] = list(self.components_enabled)
        if self.parameters:
            payload["parameters"] = [parameter.to_dict() for parameter in self.parameters]
        if self.state_files:
            payload["stateFiles"] = list(self.state_files)
        if self.status is not None:
            payload["status"] = self.status.to_dict()
        if self.inflight_operations:
            payload["inflightOperations"] = [
                operation.to_dict() for operation in self.inflight_operations
            ]
        if self.outputs:
            payload["outputs"] = [output.to_dict() for output in self.outputs]
        if self.provides:
            payload["provides"] = {key: list(value) for key, value in self.provides.items()}
        if self.git_remote is not None:
            # public is read-only on the server side
            payload["gitRemote"] = self.git_remote.to_dict(include_public=False)
        return payload


@dataclass(frozen=True, slots=True)
class DeployResponse:
    """Acknowledgement of a deploy/undeploy request."""

    job_id: str = ""

    @classmethod
    def from_dict(cls, raw: object) -> DeployResponse:
        data = _as_dict(raw, "deploy response")
        return cls(job_id=_identifier(data.get("jobId"), "jobId"))


# ----------------------------------------------------------------------
# Files descriptor
# ----------------------------------------------------------------------
FS_KIND = "fs"
OBJECT_STORE_KIND = "object-store"
_OBJECT_STORE_SCHEMES = ("s3://",)


@dataclass(frozen=True, slots=True)
class FileTarget:
    """Single persistence target."""

    kind: str
    path: str


@dataclass(frozen=True, slots=True)
class FilesDescriptor:
    """Labelled set of persistence targets consumed by storage collaborators."""

    label: str
    files: tuple[FileTarget, ...] = ()

    @classmethod
    def from_paths(cls, label: str, paths: Sequence[str]) -> FilesDescriptor:
        targets = []
        for path in paths:
            kind = OBJECT_STORE_KIND if path.startswith(_OBJECT_STORE_SCHEMES) else FS_KIND
            targets.append(FileTarget(kind=kind, path=path))
        return cls(label=label, files=tuple(targets))

    def paths(self, kind: str | None = None) -> list[str]:
        """Return target paths, optionally restricted to one *kind*."""
        return [target.path for target in self.files if kind is None or target.kind == kind]


__all__ = [
    "ComponentStatus",
    "DeployResponse",
    "EnvironmentRef",
    "FileTarget",
    "FilesDescriptor",
    "GitRemote",
    "InflightOperation",
    "Instance",
    "InstancePatch",
    "InstanceRequest",
    "InstanceStatus",
    "LifecyclePhase",
    "Output",
    "Parameter",
    "ParameterValue",
    "PlatformRef",
    "StackRef",
    "TemplateStatus",
    "ValueKind",
    "is_secret_kind",
]
