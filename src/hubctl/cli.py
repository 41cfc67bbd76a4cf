"""Typer-powered command line interface for ``hubctl``.

Commands share one :class:`RuntimeContext` built by the root callback: the
merged configuration, the operation logger, the Hub transport and the
per-run selector cache. Failures raised below the command layer are
:class:`~hubctl.errors.HubError` subclasses and are reported by
:func:`_command_error`, which maps them onto exit codes.
"""
from __future__ import annotations

import textwrap
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import typer
import yaml
from rich.console import Console
from rich.markup import escape

from . import __version__
from .commander import CommandOutcome, InstanceCommander
from .config import AppConfig, ConfigError, load_config
from .document import instances_to_json, print_instance, print_instances
from .errors import FatalIOError, HubError, InstanceDecodeError
from .exit_codes import ExitCode
from .follow import PollingLogFollower
from .kubeconfig import resolve_target, write_kubeconfig
from .logging import OperationScope, StructuredLogger
from .models import Instance, InstanceRequest
from .patch import load_patch_document
from .render import RenderErrors, ValueRenderer
from .resolver import SelectorCache, SelectorResolver
from .secret_resolver import HubSecretResolver
from .transport import HubTransport, Transport

console = Console()

CONFIG_FILE_OPTION = typer.Option(
    None,
    "--config-file",
    dir_okay=False,
    help="Override the path to hubctl's YAML config file.",
)

SECRETS_OPTION = typer.Option(
    False,
    "--secrets",
    help="Retrieve and show secret values instead of masking them.",
)

LOGS_OPTION = typer.Option(
    False,
    "--logs",
    help="Include inflight operation logs.",
)

JSON_OPTION = typer.Option(
    False,
    "--json",
    help="Emit the raw instance data as JSON.",
)

WAIT_OPTION = typer.Option(
    False,
    "--wait",
    "-w",
    help="Follow the operation until it completes and exit with its status.",
)

DRY_RUN_OPTION = typer.Option(
    False,
    "--dry-run",
    "-y",
    help="Ask the Hub to plan the operation without executing it.",
)

DOCUMENT_ARGUMENT = typer.Argument(
    ...,
    exists=True,
    dir_okay=False,
    readable=True,
    help="YAML or JSON document.",
)

app = typer.Typer(
    add_completion=False,
    help=textwrap.dedent(
        """
        Hub stack instance client.

        Look up stack instances by Id or Domain, render their parameters,
        outputs and status, and drive their lifecycle: create, patch, deploy,
        undeploy, delete and kubeconfig retrieval.
        """
    ).strip(),
)

instances_app = typer.Typer(help="Inspect and operate stack instances.")
config_app = typer.Typer(help="Inspect the effective configuration.")

app.add_typer(instances_app, name="instance")
app.add_typer(config_app, name="config")


@dataclass
class RuntimeContext:
    """Aggregated runtime objects shared by commands."""

    config: AppConfig
    logger: StructuredLogger
    transport: Transport
    cache: SelectorCache
    resolver: SelectorResolver
    commander: InstanceCommander
    renderer: ValueRenderer


def _build_transport(config: AppConfig) -> Transport:
    api = config.api
    return HubTransport(
        base_url=api.base_url,
        token=api.token,
        timeout=api.timeout,
        verify_tls=api.verify_tls,
    )


def _ensure_runtime(
    ctx: typer.Context,
    config_file: Path | None,
    *,
    verbose: bool = False,
    force: bool = False,
) -> RuntimeContext:
    runtime = ctx.obj
    if isinstance(runtime, RuntimeContext):
        return runtime

    overrides: dict[str, object] = {}
    if verbose:
        overrides["verbose"] = True
    if force:
        overrides["force"] = True

    try:
        config = load_config(config_file=config_file, overrides=overrides)
    except ConfigError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=int(exc.exit_code)) from exc

    logger = StructuredLogger(config.logs_dir)
    transport = _build_transport(config)
    cache = SelectorCache()
    resolver = SelectorResolver(transport, cache)
    follower = PollingLogFollower(
        resolver,
        console,
        poll_interval=config.follow.poll_interval,
    )
    runtime = RuntimeContext(
        config=config,
        logger=logger,
        transport=transport,
        cache=cache,
        resolver=resolver,
        commander=InstanceCommander(transport, resolver, follower=follower),
        renderer=ValueRenderer(HubSecretResolver(transport)),
    )
    ctx.obj = runtime
    return runtime


def _get_runtime(ctx: typer.Context) -> RuntimeContext:
    runtime = ctx.obj
    if isinstance(runtime, RuntimeContext):
        return runtime
    return _ensure_runtime(ctx, None)


@app.callback(invoke_without_command=True)
def _root(  # noqa: D401 - Typer displays help for us, docstring optional.
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show the hubctl version and exit.",
    ),
    config_file: Path | None = CONFIG_FILE_OPTION,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Print job ids and resolution details.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite existing output files.",
    ),
) -> None:
    """Entry point callback invoked for every CLI execution."""
    runtime = _ensure_runtime(ctx, config_file, verbose=verbose, force=force)
    if version:
        with runtime.logger.operation(
            "root --version",
            args={"version": True},
            target={"kind": "meta", "scope": "version"},
        ) as op:
            console.print(f"hubctl {__version__}")
            op.success("Reported CLI version.", changed=0)
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(code=0)


def _command_error(
    op: OperationScope,
    message: str,
    *,
    rc: int = 2,
    errors: Sequence[str] | None = None,
) -> NoReturn:
    """Emit a structured error and terminate the command."""
    console.print(f"[red]{escape(message)}[/red]", soft_wrap=True)
    op.error(message, errors=list(errors or [message]), rc=rc)
    raise typer.Exit(code=rc)


def _hub_error(op: OperationScope, exc: HubError) -> NoReturn:
    _command_error(op, str(exc), rc=int(exc.exit_code))


def _verbose(runtime: RuntimeContext, message: str) -> None:
    if runtime.config.verbose:
        console.print(f"[dim]{escape(message)}[/dim]", soft_wrap=True)


def _describe(instance: Instance) -> str:
    return f"{instance.name} / {instance.domain} [{instance.id}]"


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise FatalIOError(f"Unable to read {path}: {exc}") from exc


def _read_text(path: Path) -> str:
    try:
        return _read_bytes(path).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InstanceDecodeError(f"Unable to decode {path} as UTF-8: {exc}") from exc


def _read_document(path: Path) -> object:
    text = _read_text(path)
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InstanceDecodeError(f"Unable to parse {path}: {exc}") from exc


def _finish_render(op: OperationScope, errors: RenderErrors, summary: str, count: int) -> None:
    context = {"instances": count}
    if errors:
        op.warning(summary, warnings=errors.messages(), context=context)
    else:
        op.success(summary, changed=0, context=context)


@app.command()
def version(ctx: typer.Context) -> None:
    """Print the hubctl version."""
    runtime = _get_runtime(ctx)
    with runtime.logger.operation("version", target={"kind": "meta"}) as op:
        console.print(f"hubctl {__version__}")
        op.success("Reported CLI version.", changed=0)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Display the effective configuration after merges (token redacted)."""
    runtime = _get_runtime(ctx)
    with runtime.logger.operation("config show", target={"kind": "config"}) as op:
        console.print_json(data=runtime.config.to_dict())
        op.success("Rendered configuration as JSON.", changed=0)


@instances_app.command("list")
def instance_list(
    ctx: typer.Context,
    selector: str = typer.Argument("", help="Instance Id or Domain; lists all when omitted."),
    show_secrets: bool = SECRETS_OPTION,
    show_logs: bool = LOGS_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """List stack instances, optionally filtered by Id or Domain."""
    runtime = _get_runtime(ctx)
    with runtime.logger.operation(
        "instance list",
        args={"secrets": show_secrets, "logs": show_logs, "json": json_output},
        target={"kind": "instance", "selector": selector},
    ) as op:
        try:
            instances = runtime.resolver.lookup(selector)
        except HubError as exc:
            _hub_error(op, exc)
        if json_output:
            console.print_json(data=instances_to_json(instances))
            op.success("Reported stack instances as JSON.", changed=0)
            return
        errors = print_instances(
            console,
            instances,
            runtime.renderer,
            show_secrets=show_secrets,
            show_logs=show_logs,
        )
        _finish_render(op, errors, "Reported stack instances.", len(instances))


@instances_app.command("get")
def instance_get(
    ctx: typer.Context,
    selector: str = typer.Argument(..., help="Instance Id or Domain."),
    show_secrets: bool = SECRETS_OPTION,
    show_logs: bool = LOGS_OPTION,
    json_output: bool = JSON_OPTION,
) -> None:
    """Show one stack instance."""
    runtime = _get_runtime(ctx)
    with runtime.logger.operation(
        "instance get",
        args={"secrets": show_secrets, "logs": show_logs, "json": json_output},
        target={"kind": "instance", "selector": selector},
    ) as op:
        try:
            instance = runtime.resolver.resolve(selector)
        except HubError as exc:
            _hub_error(op, exc)
        _verbose(runtime, f"Resolved {selector} to {_describe(instance)}")
        if json_output:
            console.print_json(data=instances_to_json([instance]))
            op.success("Reported stack instance as JSON.", changed=0)
            return
        errors = print_instances(
            console,
            [instance],
            runtime.renderer,
            show_secrets=show_secrets,
            show_logs=show_logs,
        )
        _finish_render(op, errors, "Reported stack instance.", 1)


@instances_app.command("create")
def instance_create(
    ctx: typer.Context,
    document: Path = DOCUMENT_ARGUMENT,
) -> None:
    """Create a stack instance from a YAML or JSON request document."""
    runtime = _get_runtime(ctx)
    with runtime.logger.operation(
        "instance create",
        args={"file": document},
        target={"kind": "instance"},
    ) as op:
        try:
            request = InstanceRequest.from_dict(_read_document(document))
            created = runtime.commander.create(request)
        except HubError as exc:
            _hub_error(op, exc)
        console.print(f"[green]Created Stack Instance {escape(_describe(created))}[/green]")
        print_instance(console, created, runtime.renderer)
        op.success(
            "Stack instance created.",
            changed=1,
            context={"id": created.id, "domain": created.domain},
        )


@instances_app.command("patch")
def instance_patch(
    ctx: typer.Context,
    selector: str = typer.Argument(..., help="Instance Id or Domain."),
    document: Path = DOCUMENT_ARGUMENT,
    replace: bool = typer.Option(
        False,
        "--replace",
        help="Replace the listed collections instead of merging into them.",
    ),
    raw: bool = typer.Option(
        False,
        "--raw",
        help="Send the document body verbatim without parsing or scrubbing.",
    ),
) -> None:
    """Merge (or replace) fields of a stack instance."""
    runtime = _get_runtime(ctx)
    with runtime.logger.operation(
        "instance patch",
        args={"file": document, "replace": replace, "raw": raw},
        target={"kind": "instance", "selector": selector},
    ) as op:
        try:
            if raw:
                body = _read_bytes(document)
                patched = runtime.commander.raw_patch(selector, body, replace=replace)
            else:
                change = load_patch_document(_read_text(document))
                patched = runtime.commander.patch(selector, change, replace=replace)
        except HubError as exc:
            _hub_error(op, exc)
        op.add_step("instance.patch", status="success", detail=patched.id)
        console.print(f"[green]Patched Stack Instance {escape(_describe(patched))}[/green]")
        errors = print_instance(console, patched, runtime.renderer)
        if errors:
            op.warning(
                "Stack instance patched; response rendered with errors.",
                warnings=errors.messages(),
                changed=1,
            )
            return
        op.success("Stack instance patched.", changed=1, context={"id": patched.id})


def _run_lifecycle(
    ctx: typer.Context,
    verb: str,
    selector: str,
    *,
    wait: bool,
    dry_run: bool,
) -> None:
    runtime = _get_runtime(ctx)
    with runtime.logger.operation(
        f"instance {verb}",
        args={"wait": wait, "dry_run": dry_run},
        target={"kind": "instance", "selector": selector},
    ) as op:
        try:
            if verb == "deploy":
                outcome = runtime.commander.deploy(selector, wait=wait, dry_run=dry_run)
            else:
                outcome = runtime.commander.undeploy(selector, wait=wait, dry_run=dry_run)
        except HubError as exc:
            _hub_error(op, exc)
        _report_lifecycle(runtime, op, outcome)


def _report_lifecycle(runtime: RuntimeContext, op: OperationScope, outcome: CommandOutcome) -> None:
    label = _describe(outcome.instance)
    prefix = "[yellow]Dry run[/yellow]: " if outcome.dry_run else ""
    console.print(f"{prefix}Requested {outcome.verb} of Stack Instance {escape(label)}")
    if outcome.job_id:
        _verbose(runtime, f"{outcome.verb.capitalize()} job Id: {outcome.job_id}")
    context = {"id": outcome.instance.id, "job_id": outcome.job_id, "dry_run": outcome.dry_run}
    rc = outcome.exit_code
    if rc != ExitCode.OK:
        _command_error(op, f"Stack Instance {label} {outcome.verb} did not succeed.", rc=rc)
    op.success(
        f"Requested {outcome.verb}.",
        changed=0 if outcome.dry_run else 1,
        context=context,
    )


@instances_app.command("deploy")
def instance_deploy(
    ctx: typer.Context,
    selector: str = typer.Argument(..., help="Instance Id or Domain."),
    wait: bool = WAIT_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    """Deploy a stack instance."""
    _run_lifecycle(ctx, "deploy", selector, wait=wait, dry_run=dry_run)


@instances_app.command("undeploy")
def instance_undeploy(
    ctx: typer.Context,
    selector: str = typer.Argument(..., help="Instance Id or Domain."),
    wait: bool = WAIT_OPTION,
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    """Undeploy a stack instance."""
    _run_lifecycle(ctx, "undeploy", selector, wait=wait, dry_run=dry_run)


@instances_app.command("delete")
def instance_delete(
    ctx: typer.Context,
    selector: str = typer.Argument(..., help="Instance Id or Domain."),
) -> None:
    """Delete a stack instance."""
    runtime = _get_runtime(ctx)
    with runtime.logger.operation(
        "instance delete",
        target={"kind": "instance", "selector": selector},
    ) as op:
        try:
            outcome = runtime.commander.delete(selector)
        except HubError as exc:
            _hub_error(op, exc)
        for warning in outcome.warnings:
            console.print(f"[yellow]{escape(warning)}[/yellow]", soft_wrap=True)
        label = outcome.instance_id
        if outcome.domain:
            label = f"{outcome.domain} [{outcome.instance_id}]"
        console.print(f"[green]Deleted Stack Instance {escape(label)}[/green]")
        context = {"id": outcome.instance_id, "domain": outcome.domain}
        if outcome.warnings:
            op.warning(
                "Stack instance deleted with warnings.",
                warnings=list(outcome.warnings),
                changed=1,
                context=context,
            )
            return
        op.success("Stack instance deleted.", changed=1, context=context)


@instances_app.command("kubeconfig")
def instance_kubeconfig(
    ctx: typer.Context,
    selector: str = typer.Argument(..., help="Instance Id or Domain."),
    filename: str | None = typer.Option(
        None,
        "--file",
        help="Output file, directory, or '-' for standard output.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing kubeconfig file.",
    ),
) -> None:
    """Download the kubeconfig of a stack instance."""
    runtime = _get_runtime(ctx)
    overwrite = force or runtime.config.force
    with runtime.logger.operation(
        "instance kubeconfig",
        args={"file": filename, "force": overwrite},
        target={"kind": "instance", "selector": selector},
    ) as op:
        try:
            instance = runtime.resolver.resolve(selector)
            target = resolve_target(filename, instance.domain, force=overwrite)
            payload = runtime.commander.fetch_kubeconfig(selector)
            write_kubeconfig(payload.body, target)
        except HubError as exc:
            _hub_error(op, exc)
        op.add_step("kubeconfig.write", status="success", detail=str(target))
        if not target.is_stdout:
            console.print(f"Wrote kubeconfig of {escape(_describe(instance))} to {target}")
        op.success(
            "Kubeconfig written.",
            changed=0 if target.is_stdout else 1,
            context={"target": str(target), "bytes": len(payload.body)},
        )


@instances_app.command("state-files")
def instance_state_files(
    ctx: typer.Context,
    selector: str = typer.Argument(..., help="Instance Id or Domain."),
) -> None:
    """List the state file locations of a stack instance."""
    runtime = _get_runtime(ctx)
    with runtime.logger.operation(
        "instance state-files",
        target={"kind": "instance", "selector": selector},
    ) as op:
        try:
            instance = runtime.resolver.resolve(selector)
        except HubError as exc:
            _hub_error(op, exc)
        descriptor = instance.state_files_descriptor()
        if not descriptor.files:
            console.out(f"No state files for {_describe(instance)}", highlight=False)
        else:
            console.out(f"State files of {_describe(instance)}:", highlight=False)
            for target in descriptor.files:
                console.out(f"    {target.kind}: {target.path}", highlight=False)
        op.success(
            "Reported state files.",
            changed=0,
            context={"files": descriptor.paths()},
        )


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
