"""Lieferplanung: vergibt jedem Produkt den frühesten freien Lieferslot.

Ablauf eines Laufs:
  1. Produktprüfung (ungültige Produkte werden aussortiert)
  2. Mögliche Liefertage je Produkt (Vorlauf, Wochentage, Horizont)
  3. First-Fit: erster Tag mit freiem Slot gewinnt, Produkte in Eingabereihenfolge
  4. Priorisierung der vergebenen Slots (grüne Termine zuerst)
"""

import logging
import time
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ValidationError

from analysis.product_validator import ExcludedProduct, ProductValidator
from config.schema import ShopConfig
from models.product import Product
from solver.candidate_days import possible_days
from solver.prioritizer import sort_slots
from solver.slot_store import DeliverySlotStore

logger = logging.getLogger(__name__)


# ─── Ergebnis-Modelle ─────────────────────────────────────────────────────────

class ScheduleEntry(BaseModel):
    """Ein vergebener Liefertermin in der priorisierten Ausgabe."""

    timestamp: datetime      # Slot-Beginn in der Ausgabe-Zeitzone
    is_green: bool
    product_id: Optional[uuid.UUID] = None
    product_name: Optional[str] = None


class ScheduleResult(BaseModel):
    """Vollständiges Ergebnis eines Planungslaufs."""

    today: date
    entries: list[ScheduleEntry]
    unscheduled: list[Product] = []
    excluded: list[ExcludedProduct] = []
    solve_time_seconds: float = 0.0
    config_snapshot: ShopConfig

    @property
    def is_complete(self) -> bool:
        """True wenn jedes gültige Produkt einen Slot bekommen hat."""
        return not self.unscheduled

    def as_pairs(self) -> list[tuple[datetime, bool]]:
        """Die priorisierte Liste als (timestamp, is_green)-Paare."""
        return [(e.timestamp, e.is_green) for e in self.entries]

    def get_product_entry(self, product_id: uuid.UUID) -> Optional[ScheduleEntry]:
        return next((e for e in self.entries if e.product_id == product_id), None)

    def save_json(self, path: Path) -> None:
        """Speichert das Ergebnis als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "ScheduleResult":
        """Lädt ein gespeichertes Ergebnis aus JSON."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Ergebnis nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise ValueError(f"Ergebnisdatei ungültig: {path}\n{e}") from e


# ─── Planer ───────────────────────────────────────────────────────────────────

class DeliveryScheduler:
    """First-Fit-Planer über einem DeliverySlotStore.

    Verwendung:
        scheduler = DeliveryScheduler(config)
        result = scheduler.run(products, today)
    """

    def __init__(self, config: ShopConfig, store: Optional[DeliverySlotStore] = None) -> None:
        self.config = config
        self.tz = ZoneInfo(config.scheduling.timezone)
        self.output_tz = ZoneInfo(config.scheduling.output_timezone)
        self.store = store if store is not None else DeliverySlotStore(
            config.delivery, config.green, self.tz)
        self.validator = ProductValidator(config.products)

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def possible_days(self, product: Product, today: date) -> list[date]:
        return possible_days(product, today, self.config.scheduling.horizon_days)

    def schedule_delivery(self, candidate_days: Iterable[date], product: Product) -> bool:
        """Vergibt den ersten freien Slot über alle Kandidatentage (aufsteigend).

        Genau ein Slot pro erfolgreichem Aufruf. Ohne freien Slot bleibt der
        Speicher unverändert und das Ergebnis ist False.
        """
        for day in candidate_days:
            slot = self.store.reserve(day, product.id)
            if slot is not None:
                logger.debug(f"{product.name}: Slot {slot}")
                return True
        return False

    def run(self, products: Iterable[Product], today: date) -> ScheduleResult:
        """Kompletter Planungslauf: prüfen, planen, priorisieren."""
        t0 = time.time()
        products = list(products)

        report = self.validator.validate(products)
        for e in report.excluded:
            logger.info(f"Aussortiert: {e.product.name} – {e.reason}")

        names: dict[uuid.UUID, str] = {}
        unscheduled: list[Product] = []
        for product in report.valid:
            days = self.possible_days(product, today)
            if self.schedule_delivery(days, product):
                names[product.id] = product.name
            else:
                unscheduled.append(product)
                if not days:
                    logger.warning(
                        f"{product.name}: kein möglicher Liefertag im Horizont "
                        f"({self.config.scheduling.horizon_days} Tage)"
                    )
                else:
                    logger.warning(f"{product.name}: alle {len(days)} möglichen Tage sind voll")

        entries = self.prioritized_entries(today, names)
        elapsed = time.time() - t0
        logger.info(
            f"Planung abgeschlossen: {len(names)} geplant, "
            f"{len(unscheduled)} ohne Slot, {len(report.excluded)} aussortiert "
            f"({elapsed:.3f}s)"
        )
        return ScheduleResult(
            today=today,
            entries=entries,
            unscheduled=unscheduled,
            excluded=report.excluded,
            solve_time_seconds=elapsed,
            config_snapshot=self.config,
        )

    def prioritized_entries(
        self, today: date, names: Optional[dict[uuid.UUID, str]] = None
    ) -> list[ScheduleEntry]:
        """Alle Slots des Speichers in priorisierter Reihenfolge."""
        names = names or {}
        slots = sort_slots(self.store.slots(), today, self.config.green.window_days)
        return [
            ScheduleEntry(
                timestamp=s.begin.astimezone(self.output_tz),
                is_green=s.is_green,
                product_id=s.product_id,
                product_name=names.get(s.product_id) if s.product_id else None,
            )
            for s in slots
        ]
