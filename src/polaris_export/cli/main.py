"""Main CLI entry point for Polaris Export."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..config.config import Config, ConfigError, create_template
from ..pipeline.context import RunContext
from ..pipeline.driver import RunDriver
from ..pipeline.strategy import STRATEGIES, ExportStatus, ExportSummary
from ..utils.logging import setup_logging

console = Console()

DEFAULT_CONFIG_PATHS = ['config.json', 'config.yaml', 'config.yml']
AFFIRMATIVE_ANSWERS = ('yes', 'y')


@click.group()
@click.version_option(version=__version__, prog_name='polaris-export')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Polaris Export - Export projects, branches, users and role assignments from Coverity on Polaris."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    # Basic logging until the configuration is loaded
    setup_logging('DEBUG' if verbose else 'INFO')


@cli.command()
@click.option(
    '--output',
    '-o',
    default='config.json',
    help='Output configuration file path',
)
def init(output: str) -> None:
    """Initialize a new configuration file."""
    try:
        create_template(output)
        console.print(f'[green]✓[/green] Configuration template created at: {output}')
        console.print(
            f'[yellow]Please edit {output} with your Polaris tenant details[/yellow]'
        )
    except OSError as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)


@cli.command()
@click.pass_context
def projects(ctx: click.Context) -> None:
    """Export projects and their properties (projectList.json/.csv)."""
    _run_command(ctx, 'projects')


@cli.command()
@click.pass_context
def branches(ctx: click.Context) -> None:
    """Export branches grouped by project (branchesList.json, projectBranches.csv)."""
    _run_command(ctx, 'branches')


@cli.command()
@click.pass_context
def members(ctx: click.Context) -> None:
    """Export users and groups assigned to each project (detailsList.json/.csv)."""
    _run_command(ctx, 'members')


@cli.command()
@click.pass_context
def users(ctx: click.Context) -> None:
    """Export users and groups (usersList.json/.csv, groupsList.json)."""
    _run_command(ctx, 'users')


@cli.command('set-properties')
@click.pass_context
def set_properties(ctx: click.Context) -> None:
    """Upload the properties edited in projectList.json."""
    _run_command(ctx, 'set-properties')


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the resolved configuration."""
    try:
        config = _load_config(ctx)
    except ConfigError as e:
        console.print(f'[red]✗[/red] Failed to load configuration: {e}')
        sys.exit(1)

    polaris = config.polaris
    table = Table(title='Polaris Export Configuration')
    table.add_column('Setting', style='cyan')
    table.add_column('Value', style='green')

    table.add_row('Customer', polaris.customer)
    table.add_row('Email', polaris.email)
    if polaris.password:
        table.add_row('Authentication', 'password')
    elif polaris.access_token:
        table.add_row('Authentication', 'access token')
    else:
        table.add_row('Authentication', '[red]none configured[/red]')
    table.add_row('Projects URL', polaris.projects_url_template or '-')
    table.add_row('Branches URL', polaris.branches_url_template or '-')
    table.add_row('Page Sizes', _page_sizes(config))
    table.add_row('Output Directory', config.output.directory)

    console.print(table)


def _page_sizes(config: Config) -> str:
    pagination = config.pagination
    return (
        f'projects={pagination.projects}, branches={pagination.branches}, '
        f'users={pagination.users}'
    )


def _run_command(ctx: click.Context, command: str) -> None:
    """Load configuration, run one strategy and report the outcome."""
    console.print(
        Panel.fit(
            f'[bold blue]Polaris Export[/bold blue]\nRunning {command}...',
            border_style='blue',
        )
    )

    try:
        config = _load_config(ctx)
    except ConfigError as e:
        console.print(f'[red]✗[/red] {command} failed: {e}')
        sys.exit(1)

    _setup_logging_with_config(ctx, config)

    context = RunContext(config=config, confirm=_confirm_overwrite)
    summary = RunDriver(context).run(STRATEGIES[command](context))
    _display_summary(summary)

    if summary.status == ExportStatus.ABORTED:
        sys.exit(1)


def _confirm_overwrite(path: Path) -> bool:
    """Ask the operator whether an existing output file may be deleted."""
    answer = click.prompt(
        f'{path.name} already exists. Do you want to delete it? [ yes | no ]',
        default='',
        show_default=False,
    )
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = ctx.obj.get('config_path')

    if config_path:
        return Config.from_file(config_path)

    for path in DEFAULT_CONFIG_PATHS:
        if Path(path).exists():
            return Config.from_file(path)

    try:
        return Config.from_env()
    except ConfigError:
        raise ConfigError(
            'No configuration found. Use --config to specify a file or run '
            '"polaris-export init" to create one.'
        )


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False)
    log_level = 'DEBUG' if verbose else config.logging.level
    setup_logging(
        level=log_level,
        log_file=config.logging.file,
        log_format=config.logging.format,
    )


def _display_summary(summary: ExportSummary) -> None:
    """Display the outcome of a run."""
    if summary.status == ExportStatus.CANCELLED:
        console.print('[yellow]Exiting without making changes.[/yellow]')
        return

    if summary.status == ExportStatus.ABORTED:
        console.print(f'[red]✗[/red] {summary.command} failed: {summary.error_message}')
    else:
        console.print(f'[green]✓[/green] {summary.command} completed successfully')

    table = Table(title='Export Summary')
    table.add_column('Item', style='cyan')
    table.add_column('Value', style='green')
    table.add_row('Records', str(summary.items))
    table.add_row('Skipped', str(len(summary.skipped)))
    for path in summary.written:
        table.add_row('Written', path)
    if summary.completed_at:
        table.add_row('Duration', str(summary.completed_at - summary.started_at))
    console.print(table)

    if summary.skipped:
        console.print(f'\n[yellow]Skipped ({len(summary.skipped)}):[/yellow]')
        for item in summary.skipped[:5]:
            console.print(f'  • {item}')
        if len(summary.skipped) > 5:
            console.print(f'  ... and {len(summary.skipped) - 5} more')


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print('\n[red]Interrupted by user[/red]')
        sys.exit(1)


if __name__ == '__main__':
    main()
