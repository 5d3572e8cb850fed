"""Command-line interface for time-of-use energy costing."""

import json
import logging
from datetime import date, datetime
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import batch
from .calculator import calculate_usage_cost
from .models import RatePeriodName
from .tariffs import (
    ScheduleError,
    TariffConfig,
    get_config_path,
    get_current_rate_period,
    load_schedule_table_from_yaml,
    resolve_schedule,
)
from .validation import TouEnergyError, parse_usage_date

console = Console()

PERIOD_STYLES = {
    RatePeriodName.OFF_PEAK: "green",
    RatePeriodName.SUPER_OFF_PEAK: "blue",
    RatePeriodName.MID_PEAK: "yellow",
    RatePeriodName.ON_PEAK: "red",
}


def _styled(name: RatePeriodName) -> str:
    style = PERIOD_STYLES.get(name, "white")
    return f"[{style}]{name.value}[/{style}]"


def _usage_date(value: str | None) -> date:
    return parse_usage_date(value) if value else date.today()


@click.group()
@click.option("--config", "config_path", type=click.Path(), help="Path to tariffs.yaml")
@click.option("--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """Time-of-use electricity cost calculator for household devices."""
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    ctx.ensure_object(dict)
    try:
        ctx.obj["tariffs"] = TariffConfig(get_config_path(Path(config_path) if config_path else None))
    except ScheduleError as e:
        console.print(f"[red]Invalid tariff config: {e}[/red]")
        ctx.exit(1)


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("wattage", type=float)
@click.argument("start_time")
@click.argument("end_time")
@click.option("--date", "usage_date", help="Usage date (YYYY-MM-DD), defaults to today")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def cost(ctx, wattage, start_time, end_time, usage_date, as_json):
    """Cost a usage session, e.g. `tou cost 1500 18:00 20:30`."""
    try:
        day = _usage_date(usage_date)
        result = calculate_usage_cost(wattage, start_time, end_time, day, ctx.obj["tariffs"].table)
    except TouEnergyError as e:
        console.print(f"[red]Error: {e}[/red]")
        ctx.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    table = Table(title=f"{wattage:g} W, {start_time} → {end_time} on {day.isoformat()}")
    table.add_column("Rate Period")
    table.add_column("Time")
    table.add_column("Hours", justify="right")
    table.add_column("kWh", justify="right")
    table.add_column("Rate", justify="right")
    table.add_column("Cost", justify="right")

    for row in result.breakdown:
        table.add_row(
            _styled(row.rate_period),
            f"{row.start_time} - {row.end_time}",
            f"{row.hours:.1f}",
            f"{row.kwh:.2f}",
            f"{row.rate:.2f}",
            f"{row.cost:.2f}",
        )

    console.print(table)
    console.print(
        f"[cyan]Total:[/cyan] {result.duration_hours:.1f} h, "
        f"{result.total_kwh:.2f} kWh, [bold]{result.total_cost:.2f}[/bold]"
    )


@cli.command()
@click.option("--date", "usage_date", help="Date (YYYY-MM-DD), defaults to today")
@click.pass_context
def schedule(ctx, usage_date):
    """Show the rate schedule in force on a date."""
    try:
        day = _usage_date(usage_date)
    except TouEnergyError as e:
        console.print(f"[red]Error: {e}[/red]")
        ctx.exit(1)

    resolved = resolve_schedule(day, ctx.obj["tariffs"].table)

    table = Table(title=f"{day.isoformat()} ({day.strftime('%A')}): {resolved.name}")
    table.add_column("Rate Period")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Rate /kWh", justify="right")

    for period in resolved.periods:
        table.add_row(_styled(period.name), period.start, period.end, f"{period.rate:.2f}")

    console.print(table)


@cli.command()
@click.pass_context
def now(ctx):
    """Show the rate period in force right now."""
    current = datetime.now()
    period = get_current_rate_period(ctx.obj["tariffs"].table, now=current)
    console.print(
        f"{current.strftime('%Y-%m-%d %H:%M')}: {_styled(period.name)} "
        f"({period.start} - {period.end}) at {period.rate:.2f}/kWh"
    )


@cli.command("check-config")
@click.argument("path", type=click.Path(exists=True), required=False)
@click.pass_context
def check_config(ctx, path):
    """Validate a tariff YAML file (defaults to the active config)."""
    config_path = Path(path) if path else ctx.obj["tariffs"].config_path
    if config_path is None:
        console.print("[yellow]No tariff config found, using built-in schedules[/yellow]")
        return

    try:
        table = load_schedule_table_from_yaml(config_path)
    except ScheduleError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)

    months = ", ".join(str(m) for m in sorted(table.summer_months))
    console.print(f"[green]{config_path} is valid[/green] (summer months: {months})")
    for name, sched in table.schedules().items():
        console.print(f"  {name}: {len(sched.periods)} periods")


@cli.command("batch")
@click.argument("csv_path", type=click.Path(exists=True))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def batch_cmd(ctx, csv_path, as_json):
    """Cost every session in a CSV (wattage,start_time,end_time,usage_date)."""
    data = batch.calculate_from_csv(Path(csv_path), ctx.obj["tariffs"].table)

    if as_json:
        payload = {
            "sessions": [
                {"line": r["line"], **r["calculation"].to_dict()} for r in data["results"]
            ],
            "errors": data["errors"],
            "totalKwh": data["total_kwh"],
            "totalCost": data["total_cost"],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    table = Table(title=f"Sessions in {Path(csv_path).name}")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Time")
    table.add_column("Watts", justify="right")
    table.add_column("kWh", justify="right")
    table.add_column("Cost", justify="right")

    for r in data["results"]:
        session = r["session"]
        calc = r["calculation"]
        table.add_row(
            str(r["line"]),
            session.usage_date.isoformat(),
            f"{session.start_time} - {session.end_time}",
            f"{session.wattage:g}",
            f"{calc.total_kwh:.2f}",
            f"{calc.total_cost:.2f}",
        )

    console.print(table)
    console.print(
        f"[green]Costed {len(data['results'])} sessions: "
        f"{data['total_kwh']:.2f} kWh, {data['total_cost']:.2f}[/green]"
    )
    for err in data["errors"]:
        console.print(f"[yellow]Skipped line {err['line']}: {err['error']}[/yellow]")


if __name__ == "__main__":
    cli()
