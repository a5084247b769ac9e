"""Validierung eines fertigen Planungsergebnisses.

Prüft das Ergebnis unabhängig vom Planer auf Invarianten-Verletzungen
(Sicherheitsnetz, z.B. für wiederhergestellte oder geladene Ergebnisse).
"""

from collections import defaultdict
from datetime import date
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from solver.prioritizer import green_limit
from solver.scheduler import ScheduleResult


class ScheduleViolation(BaseModel):
    """Eine einzelne Invarianten-Verletzung."""

    severity: Literal["error", "warning"]
    constraint: str      # z.B. "duplicate_slot"
    description: str
    entity: str          # Zeitpunkt / Tag / Produkt-ID


class ScheduleValidationReport(BaseModel):
    """Ergebnis der Ergebnis-Validierung."""

    violations: list[ScheduleViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        errors = [v for v in self.violations if v.severity == "error"]
        warnings = [v for v in self.violations if v.severity == "warning"]

        status = (
            "[bold green]✓ VALIDE[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [status, f"Fehler: {len(errors)} | Warnungen: {len(warnings)}"]
        console.print(Panel("\n".join(lines), title="Plan-Validierung", border_style="cyan"))

        if not self.violations:
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Regel", width=22)
        table.add_column("Entität", width=26)
        table.add_column("Beschreibung")
        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.constraint,
                v.entity,
                v.description,
            )
        console.print(table)


class ScheduleValidator:
    """Prüft ein ScheduleResult gegen die Regeln seiner Konfiguration."""

    def validate(self, result: ScheduleResult) -> ScheduleValidationReport:
        violations: list[ScheduleViolation] = []
        violations.extend(self._check_duplicates(result))
        violations.extend(self._check_delivery_hours(result))
        violations.extend(self._check_capacity(result))
        violations.extend(self._check_product_once(result))
        violations.extend(self._check_priority_order(result))

        has_errors = any(v.severity == "error" for v in violations)
        return ScheduleValidationReport(violations=violations, is_valid=not has_errors)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_duplicates(self, result: ScheduleResult) -> list[ScheduleViolation]:
        """Kein Zeitpunkt darf doppelt vergeben sein."""
        seen: set = set()
        violations = []
        for e in result.entries:
            if e.timestamp in seen:
                violations.append(ScheduleViolation(
                    severity="error",
                    constraint="duplicate_slot",
                    entity=e.timestamp.isoformat(),
                    description="Zeitpunkt ist mehrfach vergeben",
                ))
            seen.add(e.timestamp)
        return violations

    def _check_delivery_hours(self, result: ScheduleResult) -> list[ScheduleViolation]:
        """Jeder Slot beginnt zur vollen Stunde innerhalb der Lieferzeiten."""
        cfg = result.config_snapshot
        tz = ZoneInfo(cfg.scheduling.timezone)
        violations = []
        for e in result.entries:
            local = e.timestamp.astimezone(tz)
            if local.minute or local.second or local.hour not in cfg.delivery.hours:
                violations.append(ScheduleViolation(
                    severity="error",
                    constraint="outside_delivery_hours",
                    entity=e.timestamp.isoformat(),
                    description=(
                        f"Beginn {local:%H:%M} liegt außerhalb von "
                        f"{cfg.delivery.first_hour}–{cfg.delivery.last_hour} Uhr"
                    ),
                ))
        return violations

    def _check_capacity(self, result: ScheduleResult) -> list[ScheduleViolation]:
        """Pro Tag höchstens capacity Slots."""
        cfg = result.config_snapshot
        tz = ZoneInfo(cfg.scheduling.timezone)
        per_day: dict[date, int] = defaultdict(int)
        for e in result.entries:
            per_day[e.timestamp.astimezone(tz).date()] += 1
        return [
            ScheduleViolation(
                severity="error",
                constraint="capacity_exceeded",
                entity=day.isoformat(),
                description=f"{count} Slots bei Kapazität {cfg.delivery.capacity}",
            )
            for day, count in sorted(per_day.items())
            if count > cfg.delivery.capacity
        ]

    def _check_product_once(self, result: ScheduleResult) -> list[ScheduleViolation]:
        """Ein Produkt belegt höchstens einen Slot."""
        counts: dict = defaultdict(int)
        for e in result.entries:
            if e.product_id is not None:
                counts[e.product_id] += 1
        return [
            ScheduleViolation(
                severity="warning",
                constraint="product_multiple_slots",
                entity=str(pid),
                description=f"Produkt belegt {n} Slots",
            )
            for pid, n in counts.items()
            if n > 1
        ]

    def _check_priority_order(self, result: ScheduleResult) -> list[ScheduleViolation]:
        """Grüne Termine im Fenster zuerst, innerhalb jeder Stufe aufsteigend."""
        cfg = result.config_snapshot
        tz = ZoneInfo(cfg.scheduling.timezone)
        limit = green_limit(result.today, cfg.green.window_days, tz)
        keys = [(not (e.is_green and e.timestamp < limit), e.timestamp) for e in result.entries]
        violations = []
        for prev, cur in zip(keys, keys[1:]):
            if cur < prev:
                violations.append(ScheduleViolation(
                    severity="error",
                    constraint="priority_order",
                    entity=cur[1].isoformat(),
                    description="Reihenfolge verletzt die Priorisierung grüner Termine",
                ))
        return violations
