"""Lieferplan — Haupt-CLI.

Verwendung:
  python main.py config init                 Default-Konfiguration anlegen
  python main.py config show                 Konfiguration anzeigen
  python main.py generate                    Demo-Katalog erzeugen
  python main.py validate <katalog>          Produktprüfung
  python main.py schedule <katalog>          Liefertermine vergeben
  python main.py check <ergebnis.json>       Gespeichertes Ergebnis prüfen
"""

import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()

DEFAULT_CATALOG = Path("output/catalog.json")
DEFAULT_RESULT_JSON = Path("output/schedule.json")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config(config_path: Optional[Path]):
    """Lädt die Konfiguration (oder Defaults) oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager(config_path)
    try:
        return mgr.load_or_default()
    except ValueError as e:
        console.print(f"[red bold]Konfiguration fehlerhaft:[/red bold]\n{e}")
        sys.exit(1)


def _load_catalog(path: Path, namespace: str):
    from models.catalog import ProductCatalog
    try:
        return ProductCatalog.load(path, namespace=namespace)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red bold]Katalog konnte nicht geladen werden:[/red bold]\n{e}")
        sys.exit(1)


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anlegen oder anzeigen."""


@cmd_config.command("init")
@click.option("--force", is_flag=True, default=False, help="Bestehende Datei überschreiben.")
@click.pass_context
def config_init(ctx: click.Context, force: bool):
    """Legt die Default-Konfiguration als YAML an."""
    from config.defaults import default_shop_config
    from config.manager import ConfigManager

    mgr = ConfigManager(ctx.obj.get("config_path"))
    if not mgr.first_run_check() and not force:
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Verwenden Sie [bold]--force[/bold] zum Überschreiben."
        )
        return
    target = mgr.save(default_shop_config())
    console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")


@cmd_config.command("show")
@click.pass_context
def config_show(ctx: click.Context):
    """Zeigt die aktuelle Konfiguration an."""
    from config.defaults import weekday_label

    config = _load_config(ctx.obj.get("config_path"))
    console.print(Panel(
        f"[bold]{config.shop_name}[/bold]  |  {config.scheduling.timezone}",
        title="Shop-Konfiguration",
        border_style="cyan",
    ))

    table = Table(box=box.ROUNDED)
    table.add_column("Parameter", style="bold")
    table.add_column("Wert")
    d = config.delivery
    table.add_row("Lieferstunden", f"{d.first_hour:02d}:00 – {d.last_hour + 1:02d}:00")
    table.add_row("Kapazität", f"{d.capacity} Lieferungen/Tag")
    table.add_row("Horizont", f"{config.scheduling.horizon_days} Tage")
    table.add_row("Grüne Tage", weekday_label(config.green.green_days))
    table.add_row("Grün-Fenster", f"{config.green.window_days} Tage")
    table.add_row("Vorlauf extern", f"{config.products.external_min_days_in_advance} Tage")
    table.add_row("Temporär gesperrt", weekday_label(config.products.temporary_excluded_days))
    table.add_row("Ausgabe-Zeitzone", config.scheduling.output_timezone)
    console.print(table)


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--count", default=20, type=click.IntRange(min=1), help="Anzahl Produkte.")
@click.option("--output", "-o", default=str(DEFAULT_CATALOG), help="Pfad für den Katalog (JSON).")
@click.pass_context
def cmd_generate(ctx: click.Context, seed: int, count: int, output: str):
    """Erzeugt einen Demo-Produktkatalog."""
    from data.fake_data import FakeCatalogGenerator

    config = _load_config(ctx.obj.get("config_path"))
    catalog = FakeCatalogGenerator(config, seed=seed).generate(count)
    out_path = Path(output)
    catalog.save_json(out_path)
    console.print(f"[dim]{catalog.summary()}[/dim]")
    console.print(f"[green]✓[/green] Katalog gespeichert: {out_path}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@click.argument("catalog", type=click.Path(path_type=Path), default=DEFAULT_CATALOG)
@click.pass_context
def cmd_validate(ctx: click.Context, catalog: Path):
    """Prüft die Produkte eines Katalogs auf gültige Lieferbeschränkungen."""
    from analysis.product_validator import ProductValidator

    config = _load_config(ctx.obj.get("config_path"))
    cat = _load_catalog(catalog, config.scheduling.product_namespace)
    console.print(f"[dim]{cat.summary()}[/dim]")
    report = ProductValidator(config.products).validate(cat.products)
    report.print_rich()


# ─── SCHEDULE ─────────────────────────────────────────────────────────────────

def _print_schedule(result) -> None:
    table = Table(title=f"Liefertermine ab {result.today:%d.%m.%Y}", box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Termin")
    table.add_column("Grün")
    table.add_column("Produkt")
    for i, e in enumerate(result.entries, start=1):
        table.add_row(
            str(i),
            e.timestamp.isoformat(),
            "[green]✓[/green]" if e.is_green else "",
            e.product_name or (str(e.product_id) if e.product_id else "—"),
        )
    console.print(table)

    if result.unscheduled:
        console.print("\n[yellow bold]Ohne Liefertermin:[/yellow bold]")
        for p in result.unscheduled:
            console.print(f"  [yellow]• {p}[/yellow]")
    if result.excluded:
        console.print("\n[dim]Aussortiert:[/dim]")
        for e in result.excluded:
            console.print(f"  [dim]• {e.product.name}: {e.reason}[/dim]")


@click.command("schedule")
@click.argument("catalog", type=click.Path(path_type=Path), default=DEFAULT_CATALOG)
@click.option("--today", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Planungsdatum (Default: heute in der Lager-Zeitzone).")
@click.option("--state", type=click.Path(path_type=Path), default=None,
              help="Zustandsdatei mit bereits vergebenen Slots (wird fortgeschrieben).")
@click.option("--export-json", is_flag=True, default=False, help="Ergebnis als JSON speichern.")
@click.option("--json-path", default=str(DEFAULT_RESULT_JSON), help="Pfad für JSON-Export.")
@click.option("--strict", is_flag=True, default=False,
              help="Exit-Code 1, wenn ein gültiges Produkt keinen Slot bekommt.")
@click.pass_context
def cmd_schedule(ctx: click.Context, catalog: Path, today: Optional[datetime],
                 state: Optional[Path], export_json: bool, json_path: str, strict: bool):
    """Vergibt Liefertermine für alle Produkte eines Katalogs."""
    from zoneinfo import ZoneInfo
    from solver.scheduler import DeliveryScheduler
    from solver.state_file import load_state, save_state

    config = _load_config(ctx.obj.get("config_path"))
    cat = _load_catalog(catalog, config.scheduling.product_namespace)
    run_date: date = (
        today.date() if today is not None
        else datetime.now(ZoneInfo(config.scheduling.timezone)).date()
    )

    scheduler = DeliveryScheduler(config)
    if state is not None:
        try:
            load_state(scheduler.store, state)
        except ValueError as e:
            console.print(f"[red bold]{e}[/red bold]")
            sys.exit(1)

    result = scheduler.run(cat.products, run_date)
    _print_schedule(result)

    if state is not None:
        save_state(scheduler.store, state)
    if export_json:
        out_path = Path(json_path)
        result.save_json(out_path)
        console.print(f"[green]✓[/green] Ergebnis gespeichert: {out_path}")

    if strict and not result.is_complete:
        sys.exit(1)


# ─── CHECK ────────────────────────────────────────────────────────────────────

@click.command("check")
@click.argument("result_json", type=click.Path(path_type=Path), default=DEFAULT_RESULT_JSON)
def cmd_check(result_json: Path):
    """Prüft ein gespeichertes Planungsergebnis auf Regelverletzungen."""
    from analysis.schedule_validator import ScheduleValidator
    from solver.scheduler import ScheduleResult

    try:
        result = ScheduleResult.load_json(result_json)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red bold]Ergebnis konnte nicht geladen werden:[/red bold]\n{e}")
        sys.exit(1)
    report = ScheduleValidator().validate(result)
    report.print_rich()
    sys.exit(0 if report.is_valid else 1)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Pfad zur Konfigurationsdatei (Default: config/shop_config.yaml).")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug-Ausgaben.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """Lieferplan: Vergabe von Lieferfenstern mit Vorzug für grüne Liefertage."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def main():
    """Einstiegspunkt."""
    cli(obj={})


# Befehle registrieren
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_validate)
cli.add_command(cmd_schedule)
cli.add_command(cmd_check)


if __name__ == "__main__":
    main()
