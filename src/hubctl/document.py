"""Assemble and print the human-readable stack instance document.

Data gathering and layout are kept apart: :class:`InstanceDocumentBuilder`
turns an :class:`~hubctl.models.Instance` into a tree of
:class:`DocumentNode` objects, and :class:`DocumentPrinter` walks that tree
once to produce indented text. Value leaves are delegated to the
:class:`~hubctl.render.ValueRenderer`; their failures are collected and
printed after every document has been emitted.
"""
from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from rich.console import Console

from .models import (
    ComponentStatus,
    EnvironmentRef,
    InflightOperation,
    Instance,
    PlatformRef,
    StackRef,
    TemplateStatus,
)
from .render import RenderErrors, ValueRenderer
from .resolver import instance_path

INDENT = "    "


@dataclass(slots=True)
class DocumentNode:
    """Labelled section or field of a rendered document."""

    label: str
    value: str | None = None
    children: list[DocumentNode] = field(default_factory=list)

    def add(self, label: str, value: str | None = None) -> DocumentNode:
        """Append and return a child node."""
        child = DocumentNode(label, value)
        self.children.append(child)
        return child

    def text(self) -> str:
        if self.value is not None:
            return f"{self.label}: {self.value}"
        if self.children:
            return f"{self.label}:"
        return self.label


@dataclass(slots=True)
class DocumentPrinter:
    """Recursive printer for :class:`DocumentNode` trees."""

    console: Console
    indent: str = INDENT

    def lines(self, node: DocumentNode, depth: int = 0) -> list[str]:
        """Return the indented lines for *node* and its descendants."""
        prefix = self.indent * depth
        first, *rest = node.text().split("\n")
        output = [f"{prefix}{first}"]
        # continuation lines of a multi-line value sit one level deeper
        output.extend(f"{prefix}{self.indent}{line}" for line in rest)
        for child in node.children:
            output.extend(self.lines(child, depth + 1))
        return output

    def print(self, node: DocumentNode, depth: int = 0) -> None:
        for line in self.lines(node, depth):
            self.console.out(line, highlight=False)


def _join(items: Iterable[str]) -> str:
    return ", ".join(items)


def _ref_text(name: str, domain: str, ident: str) -> str:
    label = f"{name} / {domain}" if domain else name
    return f"{label} [{ident}]" if ident else label


def _environment_text(ref: EnvironmentRef) -> str:
    return _ref_text(ref.name, ref.domain, ref.id)


def _stack_text(ref: StackRef) -> str:
    return _ref_text(ref.name, "", ref.id)


def _deployed_text(status: TemplateStatus) -> str:
    parts = [status.short_commit, status.ref, status.author, status.date, status.subject]
    return " ".join(part for part in parts if part)


def _options_text(options: Mapping[str, object]) -> str:
    rendered = []
    for key in sorted(options):
        value = options[key]
        text = value if isinstance(value, str) else json.dumps(value, sort_keys=True)
        rendered.append(f"{key}={text}")
    return _join(rendered)


def _add_provides(parent: DocumentNode, provides: Mapping[str, Sequence[str]]) -> None:
    node = parent.add("Provides")
    for key in sorted(provides):
        node.add(f"{key} => {_join(provides[key])}")


def _add_state_files(parent: DocumentNode, paths: Sequence[str]) -> None:
    node = parent.add("State files")
    for path in paths:
        node.add(path)


@dataclass(slots=True)
class InstanceDocumentBuilder:
    """Build the document tree for one instance."""

    renderer: ValueRenderer
    show_secrets: bool = False
    show_logs: bool = False
    errors: RenderErrors = field(default_factory=RenderErrors)

    def build(self, instance: Instance) -> DocumentNode:
        title = f"{instance.name} / {instance.domain} [{instance.id}]"
        if instance.description:
            title = f"{title} - {instance.description}"
        root = DocumentNode(title)

        if instance.tags:
            root.add("Tags", _join(instance.tags))
        if instance.environment.name:
            root.add("Environment", _environment_text(instance.environment))
        if instance.platform is not None and instance.platform.name:
            self._add_platform(root, instance.platform)
        if instance.stack.name:
            root.add("Stack", _stack_text(instance.stack))
        if instance.template.name:
            root.add("Template", _stack_text(instance.template))
        if instance.components_enabled:
            root.add("Components", _join(instance.components_enabled))
        if instance.verbs:
            root.add("Verbs", _join(instance.verbs))
        git = instance.git_remote
        if git.public or git.has_refs:
            node = root.add("Git", git.public)
            if git.template_ref:
                node.add("Ref", git.template_ref)
            if git.k8s_ref:
                node.add("stack-k8s-aws ref", git.k8s_ref)
        if instance.state_files:
            _add_state_files(root, instance.state_files)
        if instance.provides:
            _add_provides(root, instance.provides)

        resource = instance_path(instance.id)
        if instance.outputs:
            outputs = root.add("Outputs")
            for output in instance.outputs:
                rendered = self.renderer.format_output(resource, output, self.show_secrets)
                self.errors.add(rendered.error)
                outputs.add(rendered.text)
        if instance.parameters:
            parameters = root.add("Parameters")
            for parameter in sorted(instance.parameters, key=lambda item: item.sort_key()):
                rendered = self.renderer.format_parameter(resource, parameter, self.show_secrets)
                self.errors.add(rendered.error)
                parameters.add(rendered.text)

        status = instance.status
        if status.status:
            root.add("Status", status.status)
        if status.template is not None and status.template.commit:
            root.add("Template deployed", _deployed_text(status.template))
        if status.k8s is not None and status.k8s.commit:
            root.add("Kubernetes deployed", _deployed_text(status.k8s))
        if status.components:
            components = root.add("Components Status")
            for component in status.components:
                self._add_component_status(components, component)
        if instance.inflight_operations:
            operations = root.add("Inflight Operations")
            for operation in instance.inflight_operations:
                self._add_operation(operations, operation)
        return root

    # ------------------------------------------------------------------
    def _add_platform(self, parent: DocumentNode, platform: PlatformRef) -> None:
        node = parent.add("Platform", _ref_text(platform.name, platform.domain, platform.id))
        if platform.state_files:
            _add_state_files(node, platform.state_files)
        if platform.provides:
            _add_provides(node, platform.provides)

    def _add_component_status(self, parent: DocumentNode, component: ComponentStatus) -> None:
        label = component.name
        if component.version:
            label = f"{label} [{component.version}]"
        label = f"{label} - {component.status}"
        if component.message:
            label = f"{label}: {component.message}"
        node = parent.add(label)
        for key in sorted(component.outputs):
            node.add(key, component.outputs[key])

    def _add_operation(self, parent: DocumentNode, operation: InflightOperation) -> None:
        summary = f"{operation.operation} - {operation.status}"
        if operation.timestamp is not None:
            summary = f"{summary} {operation.timestamp.isoformat()}"
        if operation.initiator:
            summary = f"{summary} by {operation.initiator}"
        if operation.description:
            summary = f"{summary} ({operation.description})"
        node = parent.add("Operation", f"{summary} {operation.id}")
        if operation.platform_domain:
            node.add("Platform", operation.platform_domain)
        if operation.options:
            node.add("Options", _options_text(operation.options))
        if operation.phases:
            phases = node.add("Phases")
            for phase in operation.phases:
                phases.add(f"{phase.phase} - {phase.status}")
        if self.show_logs and operation.logs:
            logs = node.add("Logs")
            for line in operation.logs.rstrip("\n").split("\n"):
                logs.add(line)


def print_render_errors(console: Console, errors: RenderErrors, header: str) -> None:
    """Print collected leaf failures once, each on its own line."""
    if not errors:
        return
    console.out(header, highlight=False)
    for message in errors.messages():
        console.out(f"{INDENT}{message}", highlight=False)


def print_instances(
    console: Console,
    instances: Sequence[Instance],
    renderer: ValueRenderer,
    *,
    show_secrets: bool = False,
    show_logs: bool = False,
) -> RenderErrors:
    """Print the ``Stack Instances`` listing followed by any render errors."""
    if not instances:
        console.out("No Stack Instances", highlight=False)
        return RenderErrors()
    builder = InstanceDocumentBuilder(renderer, show_secrets=show_secrets, show_logs=show_logs)
    printer = DocumentPrinter(console)
    console.out("Stack Instances:", highlight=False)
    for instance in instances:
        console.out("", highlight=False)
        printer.print(builder.build(instance), depth=1)
    print_render_errors(console, builder.errors, "Errors encountered:")
    return builder.errors


def print_instance(console: Console, instance: Instance, renderer: ValueRenderer) -> RenderErrors:
    """Print a single instance returned by a mutating command."""
    builder = InstanceDocumentBuilder(renderer)
    DocumentPrinter(console).print(builder.build(instance), depth=1)
    print_render_errors(console, builder.errors, "Errors encountered formatting response:")
    return builder.errors


def instances_to_json(instances: Sequence[Instance]) -> object:
    """Structured form: one object for a single instance, an array otherwise."""
    if len(instances) == 1:
        return instances[0].to_dict()
    return [instance.to_dict() for instance in instances]


__all__ = [
    "DocumentNode",
    "DocumentPrinter",
    "InstanceDocumentBuilder",
    "instances_to_json",
    "print_instance",
    "print_instances",
    "print_render_errors",
]
