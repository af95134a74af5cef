from __future__ import annotations

from typing import Any, Dict, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def render_usage(payload: Dict[str, List[Dict[str, Any]]]) -> None:
    if not payload:
        typer.echo("No usage records matched.")
        return

    for instance, records in payload.items():
        echo_heading(f"Instance {instance}")
        for position, record in enumerate(records, start=1):
            typer.echo(
                f"  #{position}: prev={record.get('prev_kwh')} kWh"
                f" curr={record.get('curr_kwh')} kWh"
                f" daily={record.get('daily_kwh')} kWh"
                f" avg={record.get('avg_power_watt')} W"
            )
        typer.echo()
