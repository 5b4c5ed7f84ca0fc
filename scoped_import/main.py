"""scoped-import - inspect import sources and run scripts with selective imports."""

import logging
import sys
from pathlib import Path

import click
from rich.table import Table

from .console import console
from .console import error_console
from .importer import Importer
from .importer import set_default_importer
from .logging_setup import init_json_logging
from .resolution.sources import FileSource
from .resolution.sources import SourceKind
from .settings import load_settings
from .utils.error_format import escape_markup
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)


def _fail(e: BaseException) -> None:
    error_console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e))}")
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.version_option(package_name="scoped-import")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Write JSONL logs to this file")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level for the JSONL log",
)
@click.pass_context
def cli(ctx: click.Context, log_file: str | None, log_level: str | None):
    """Selective imports from packages and module files."""
    if log_file or log_level:
        init_json_logging(log_file, log_level)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


@cli.command()
@click.argument("source")
@click.option(
    "--directory",
    "-d",
    type=click.Path(file_okay=False, exists=True, path_type=Path),
    help="Resolve relative module paths against this directory",
)
@click.option(
    "--kind",
    type=click.Choice([k.value for k in SourceKind]),
    default=SourceKind.AUTO.value,
    help="Treat SOURCE as a package or a file",
)
def exports(source: str, directory: Path | None, kind: str):
    """List the names SOURCE exports."""
    importer = Importer(settings=load_settings())
    try:
        resolved = importer.resolve_source(source, directory=directory, kind=SourceKind(kind))
        with importer.activated():
            names = importer.bindings.exports(resolved)
            values = importer.bindings.resolve_all(resolved, names)
    except Exception as e:
        _fail(e)
        return

    source_type = "module" if isinstance(resolved, FileSource) else "package"
    table = Table(title=f"Exports of {escape_markup(resolved)}")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="dim")

    for name, value in zip(names, values, strict=True):
        table.add_row(name, type(value).__name__)

    console.print(table)
    console.print(f"\n[bold]Total:[/bold] {len(names)} names ({source_type})")


@cli.command()
@click.argument("script", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--show-chain", is_flag=True, help="Print the registered namespaces after the run")
def run(script: Path, show_chain: bool):
    """Run SCRIPT with a fresh importer."""
    importer = Importer(settings=load_settings())
    set_default_importer(importer)
    try:
        importer.run_script(script)
    except Exception as e:
        _fail(e)
        return
    finally:
        set_default_importer(None)

    logger.info(f"Ran {script} ({len(importer.cache)} modules loaded)")

    if not show_chain:
        return

    if not len(importer.chain):
        console.print("[dim]No namespaces registered.[/dim]")
        return

    table = Table(title="Search Chain")
    table.add_column("Position", justify="right", style="dim")
    table.add_column("Namespace", style="cyan")
    table.add_column("Bindings", style="green")
    for position, namespace in enumerate(importer.chain, start=1):
        table.add_row(str(position), escape_markup(namespace.name), ", ".join(namespace) or "-")
    console.print(table)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
