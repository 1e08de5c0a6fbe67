"""Rules command - list and add stored rules."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from voicerules.core.domain.errors import VoiceRulesError
from voicerules.core.domain.rule import TriggerType
from voicerules.infrastructure.persistence import FileRuleStore

app = typer.Typer(help="Rule management")
console = Console()


def _store(ctx: typer.Context) -> FileRuleStore:
    config = (ctx.obj or {})["config"]
    return FileRuleStore(config.data_dir)


@app.command("list")
def list_rules(ctx: typer.Context):
    """List stored rules in match order."""
    store = _store(ctx)
    rules = asyncio.run(store.list_rules())

    if not rules:
        console.print("[dim]No rules defined[/dim]")
        return

    table = Table(title=f"Rules ({store.rules_path})")
    table.add_column("ID", style="dim")
    table.add_column("Trigger", style="cyan")
    table.add_column("Keyword", style="bold")
    table.add_column("Response", style="white")
    table.add_column("Enabled")

    for rule in rules:
        table.add_row(
            rule.id[:8],
            rule.trigger.type.value,
            rule.trigger.keyword,
            rule.response.type,
            "[green]yes[/green]" if rule.enabled else "[red]no[/red]",
        )
    console.print(table)


@app.command("add-text")
def add_text(
    ctx: typer.Context,
    keyword: str = typer.Argument(..., help="Trigger keyword"),
    text: str = typer.Argument(..., help="Reply text"),
    trigger: TriggerType = typer.Option(
        TriggerType.CONTAINS, "--trigger", "-t", help="How the keyword is matched"
    ),
    abort: bool = typer.Option(
        False, "--abort", help="Interrupt the assistant and speak the text directly"
    ),
    description: str = typer.Option(None, "--description", help="Free-form note"),
):
    """Add a rule that replies with fixed text."""
    store = _store(ctx)
    payload = {
        "trigger": {"type": trigger.value, "keyword": keyword},
        "response": {"type": "text", "text": text, "abortXiaoAI": abort},
        "enabled": True,
    }
    if description:
        payload["description"] = description

    try:
        rule = asyncio.run(store.create_rule(payload))
    except VoiceRulesError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    console.print(f"[green]Created rule[/green] [cyan]{rule.id}[/cyan]")
