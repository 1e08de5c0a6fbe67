"""voicerules CLI entry point."""

import asyncio

import typer
from rich.console import Console
from rich.markup import escape

from voicerules.api.cli.commands import rules
from voicerules.application.config import load_config
from voicerules.core.domain.errors import ConfigurationError

app = typer.Typer(
    name="voicerules",
    help="voicerules - keyword-triggered actions for voice assistants",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.add_typer(rules.app, name="rules", help="Rule management")


@app.callback()
def main(
    ctx: typer.Context,
    config: str = typer.Option(None, "--config", "-c", help="YAML configuration file"),
    log_level: str = typer.Option(None, "--log-level", "-l", help="Override LOGLEVEL"),
):
    """voicerules CLI."""
    from voicerules.infrastructure.logging_setup import configure_logging

    try:
        engine_config = load_config(config)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        raise typer.Exit(1)

    configure_logging(log_level or engine_config.log_level)
    ctx.obj = {"config": engine_config}


@app.command("serve-executor")
def serve_executor(
    ctx: typer.Context,
    host: str = typer.Option(None, "--host", help="Bind address"),
    port: int = typer.Option(None, "--port", help="Port (default REMOTE_EXECUTOR_PORT or 3001)"),
):
    """Run the isolated process execution service."""
    from voicerules.api.executor_server import run

    config = ctx.obj["config"]
    run(host=host or config.executor_host, port=port or config.executor_port)


@app.command("serve-admin")
def serve_admin(
    ctx: typer.Context,
    host: str = typer.Option(None, "--host", help="Bind address"),
    port: int = typer.Option(None, "--port", help="Port (default ADMIN_PORT or 3000)"),
):
    """Run the admin API for rules and settings."""
    from voicerules.api.admin_server import run
    from voicerules.infrastructure.persistence import FileRuleStore

    config = ctx.obj["config"]
    run(
        FileRuleStore(config.data_dir),
        host=host or config.admin_host,
        port=port or config.admin_port,
    )


@app.command()
def dispatch(
    ctx: typer.Context,
    utterance: str = typer.Argument(..., help="Recognized utterance to handle"),
    wait: bool = typer.Option(False, "--wait", help="Honor settle delays"),
):
    """Run one utterance through the engine against a console device."""
    from voicerules.api.cli.console_device import ConsoleDevice
    from voicerules.application.dispatcher import ActionDispatcher, ExecutorSet
    from voicerules.application.engine import RuleDispatchEngine
    from voicerules.core.domain.outcome import Handled, Reply
    from voicerules.infrastructure.persistence import FileRuleStore

    config = ctx.obj["config"]
    engine = RuleDispatchEngine(
        FileRuleStore(config.data_dir),
        ActionDispatcher(
            ExecutorSet.create(
                settle_delay=config.settle_delay_seconds,
                api_timeout=config.api_timeout_seconds,
            )
        ),
    )
    device = ConsoleDevice(console, real_sleep=wait)

    outcome = asyncio.run(engine.handle_message(device, utterance))
    if isinstance(outcome, Reply):
        console.print(f"[bold blue]Reply:[/bold blue] {escape(outcome.text)}")
    elif isinstance(outcome, Handled):
        console.print("[bold blue]Handled[/bold blue]")
    else:
        console.print("[dim]No rule matched; default handling continues[/dim]")


@app.command()
def version():
    """Show voicerules version."""
    from voicerules import __version__

    console.print(f"[bold blue]Version:[/bold blue] [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
