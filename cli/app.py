from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_usage


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for querying the power usage service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:9118).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("usage")
def usage_command(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Regex matched against the instance label."),
    date: str = typer.Option(..., "--date", "-d", help="Date in WIB, YYYY-MM-DD."),
    time: str = typer.Option(..., "--time", "-t", help="Clock time in WIB, HH:MM."),
    csv: bool = typer.Option(False, "--csv", help="Print the raw CSV report."),
) -> None:
    """Fetch daily power usage for instances matching TARGET."""
    state = _get_state(ctx)
    if csv:
        typer.echo(state.client.get_usage_csv(target, date, time), nl=False)
        return
    payload = state.client.get_usage(target, date, time)
    render_usage(payload)
