"""
IssueKeeper Command Line Interface.

Manage intent records and run the reconciler that keeps them in sync with
GitHub issues.
"""

import asyncio
import sys

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from issuekeeper.admission import AdmissionValidator
from issuekeeper.config import ConfigurationError, IssueKeeperConfig, load_config
from issuekeeper.errors import IssueKeeperError
from issuekeeper.models.base import ConditionType
from issuekeeper.models.record import IntentRecord, RecordKey
from issuekeeper.reconciler import Controller, Reconciler
from issuekeeper.store import FileRecordStore, ManifestError, load_manifest
from issuekeeper.utils.logging import configure_logging
from issuekeeper.version import __version__

console = Console()


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    return asyncio.run(coro)


def _open_store(cfg: IssueKeeperConfig, admission: bool = False) -> FileRecordStore:
    validator = AdmissionValidator.from_config(cfg.admission) if admission else None
    return FileRecordStore(cfg.store.path, validator=validator)


def _parse_key(value: str) -> RecordKey:
    try:
        return RecordKey.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _format_conditions(record: IntentRecord) -> str:
    parts = []
    for cond_type in ConditionType:
        condition = record.status.get_condition(cond_type)
        if condition is not None:
            parts.append(f"{cond_type.value}={condition.status.value}")
    return ", ".join(parts) or "-"


@click.group()
@click.version_option(version=__version__, prog_name="issuekeeper")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """IssueKeeper: keep declared issues in sync with GitHub.

    Records declare the title and description of an issue in a repository;
    the reconciler creates, corrects and finally closes the matching ticket.
    """
    ctx.ensure_object(dict)
    try:
        cfg = load_config(config_path)
    except (ConfigurationError, FileNotFoundError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)

    configure_logging(cfg.logging, verbose=verbose or cfg.debug)
    ctx.obj["config"] = cfg
    ctx.obj["verbose"] = verbose


@main.command()
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--skip-reachability",
    is_flag=True,
    help="Do not probe repository URLs when creating records",
)
@click.pass_context
def apply(ctx: click.Context, manifest: str, skip_reachability: bool) -> None:
    """Create or update records from a YAML manifest."""
    cfg: IssueKeeperConfig = ctx.obj["config"]
    if skip_reachability:
        cfg = cfg.model_copy(deep=True)
        cfg.admission.check_reachability = False

    try:
        records = load_manifest(manifest)
        results = run_async(_apply_records(cfg, records))
    except (ManifestError, IssueKeeperError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    for key, action in results:
        console.print(f"{key} [green]{action}[/green]")


async def _apply_records(
    cfg: IssueKeeperConfig,
    records: list[IntentRecord],
) -> list[tuple[RecordKey, str]]:
    store = _open_store(cfg, admission=True)
    results = []
    for record in records:
        if record.key in store:
            current = await store.get(record.key)
            if current.spec == record.spec:
                results.append((record.key, "unchanged"))
                continue
            current.spec = record.spec
            await store.update(current)
            results.append((record.key, "configured"))
        else:
            await store.create(record)
            results.append((record.key, "created"))
    return results


@main.command()
@click.argument("key")
@click.pass_context
def delete(ctx: click.Context, key: str) -> None:
    """Request deletion of a record (NAMESPACE/NAME).

    A record holding the finalizer stays until the reconciler has closed
    its ticket.
    """
    record_key = _parse_key(key)
    store = _open_store(ctx.obj["config"])
    try:
        run_async(store.delete(record_key))
    except IssueKeeperError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if record_key in store:
        console.print(f"{record_key} [yellow]marked for deletion[/yellow]")
    else:
        console.print(f"{record_key} [green]deleted[/green]")


@main.command()
@click.pass_context
def get(ctx: click.Context) -> None:
    """List records and their status."""
    cfg: IssueKeeperConfig = ctx.obj["config"]
    store = _open_store(cfg)
    records = run_async(store.list_records())

    if not records:
        console.print("[yellow]No records found.[/yellow]")
        return

    table = Table(title="Records")
    table.add_column("Key", style="cyan")
    table.add_column("Repository")
    table.add_column("Title")
    table.add_column("Ticket", justify="right")
    table.add_column("Conditions")
    table.add_column("Finalizer", justify="center")
    table.add_column("Deleting", justify="center")

    for record in sorted(records, key=lambda r: str(r.key)):
        table.add_row(
            str(record.key),
            record.spec.repo,
            record.spec.title,
            f"#{record.status.tracked_id}" if record.status.tracked_id else "-",
            _format_conditions(record),
            "yes" if record.has_finalizer(cfg.reconciler.finalizer_name) else "no",
            "yes" if record.deletion_requested else "no",
        )

    console.print(table)


@main.command()
@click.argument("key")
@click.pass_context
def reconcile(ctx: click.Context, key: str) -> None:
    """Run one reconcile invocation for a record (NAMESPACE/NAME)."""
    cfg: IssueKeeperConfig = ctx.obj["config"]
    record_key = _parse_key(key)
    reconciler = Reconciler.from_config(cfg, _open_store(cfg))

    try:
        result = run_async(reconciler.reconcile(record_key))
    except IssueKeeperError as e:
        console.print(f"[red]Error:[/red] {e}")
        if ctx.obj["verbose"]:
            console.print_exception()
        sys.exit(1)

    lines = [f"[bold]Outcome:[/bold] {result.outcome.value}"]
    if result.ticket_id is not None:
        lines.append(f"[bold]Ticket:[/bold] #{result.ticket_id}")
    for label, flag in (("created", result.created), ("updated", result.updated), ("closed", result.closed)):
        if flag:
            lines.append(f"[green]Ticket {label}[/green]")
    if result.requeue_after is not None:
        lines.append(f"[dim]Next check in {result.requeue_after:g}s[/dim]")
    console.print(Panel("\n".join(lines), title=str(record_key)))


@main.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Run the controller until interrupted."""
    cfg: IssueKeeperConfig = ctx.obj["config"]
    store = _open_store(cfg)
    reconciler = Reconciler.from_config(cfg, store)
    controller = Controller.from_config(cfg, reconciler, store)

    console.print(
        Panel(
            f"Store: {cfg.store.path}\n"
            f"Workers: {cfg.queue.workers}\n"
            f"Requeue after: {cfg.reconciler.requeue_after_seconds:g}s",
            title="[bold blue]IssueKeeper controller[/bold blue]",
        )
    )
    try:
        run_async(controller.run())
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted, controller stopped.[/yellow]")


@main.command("config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Display the effective configuration."""
    cfg: IssueKeeperConfig = ctx.obj["config"]
    console.print(
        Panel(
            yaml.safe_dump(cfg.to_yaml_dict(), default_flow_style=False, sort_keys=False),
            title="[bold blue]IssueKeeper Configuration[/bold blue]",
        )
    )


if __name__ == "__main__":
    main()
