"""Speicher der vergebenen Lieferfenster.

Invarianten:
  - keine zwei gespeicherten Slots überlappen (stündliches Raster, volle Stunden
    zwischen first_hour und last_hour)
  - pro Kalendertag höchstens capacity = last_hour - first_hour + 1 Slots
"""

import logging
import threading
import uuid
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from config.schema import DeliveryHoursConfig, GreenPolicyConfig
from models.delivery_slot import DeliverySlot

logger = logging.getLogger(__name__)


def overlaps(slot: DeliverySlot, begin: datetime, end: datetime) -> bool:
    """True wenn sich [slot.begin, slot.end) und [begin, end) schneiden.

    Randberührung zählt nicht (ein Slot, der endet, wenn das Intervall beginnt).
    Ein Intervall, das den Slot umschließt oder von ihm umschlossen wird, zählt.
    """
    return begin < slot.end and slot.begin < end


class DeliverySlotStore:
    """Hält alle vergebenen Slots des Planungshorizonts.

    Verwendung:
        store = DeliverySlotStore(config.delivery, config.green, tz)
        slot = store.next_free_slot(day)
        if slot is not None:
            store.commit(slot.assign(product.id))
    """

    def __init__(
        self,
        hours: DeliveryHoursConfig,
        green: GreenPolicyConfig,
        tz: tzinfo | str = "UTC",
    ) -> None:
        self.hours = hours
        self.green_days = frozenset(green.green_days)
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz
        self._slots: dict[datetime, DeliverySlot] = {}
        self._lock = threading.Lock()

    overlaps = staticmethod(overlaps)

    @property
    def capacity(self) -> int:
        return self.hours.capacity

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, slot: DeliverySlot) -> bool:
        return slot.begin in self._slots

    def __repr__(self) -> str:
        return f"DeliverySlotStore({len(self._slots)} Slots, Kapazität {self.capacity}/Tag)"

    def slots(self) -> list[DeliverySlot]:
        """Alle vergebenen Slots, aufsteigend nach Beginn."""
        return sorted(self._slots.values(), key=lambda s: s.begin)

    # ─── Abfragen ─────────────────────────────────────────────────────────────

    def _day_bounds(self, day: date) -> tuple[datetime, datetime]:
        start = datetime.combine(day, time(0), tzinfo=self.tz)
        end = datetime.combine(day + timedelta(days=1), time(0), tzinfo=self.tz)
        return start, end

    def count_for_day(self, day: date) -> int:
        """Anzahl Slots im Tag [day 00:00, day+1 00:00).

        Slots liegen im Stundenraster, schneiden also höchstens einen Tag.
        """
        start, end = self._day_bounds(day)
        return sum(1 for s in self._slots.values() if overlaps(s, start, end))

    def make_slot(self, day: date, hour: int) -> DeliverySlot:
        """Erzeugt einen (nicht gespeicherten) Slot im Raster dieses Speichers."""
        return DeliverySlot.at(day, hour, self.tz, self.green_days)

    def next_free_slot(self, day: date) -> Optional[DeliverySlot]:
        """Erster freier Slot des Tages oder None, wenn der Tag voll ist."""
        if self.count_for_day(day) >= self.capacity:
            return None
        for hour in self.hours.hours:
            slot = self.make_slot(day, hour)
            if slot.begin not in self._slots:
                return slot
        return None

    # ─── Einfügen ─────────────────────────────────────────────────────────────

    def _on_grid(self, slot: DeliverySlot) -> bool:
        local = slot.begin.astimezone(self.tz)
        return (
            local.minute == 0 and local.second == 0 and local.microsecond == 0
            and local.hour in self.hours.hours
        )

    def commit(self, slot: DeliverySlot) -> bool:
        """Speichert den Slot. False bei Doppelbelegung, Rasterfehler oder voller Tagesliste."""
        if slot.begin in self._slots:
            logger.warning(f"Slot {slot} ist bereits vergeben – nicht gespeichert")
            return False
        if not self._on_grid(slot):
            logger.warning(
                f"Slot {slot} liegt außerhalb des Lieferrasters "
                f"({self.hours.first_hour}–{self.hours.last_hour} Uhr) – nicht gespeichert"
            )
            return False
        day = slot.begin.astimezone(self.tz).date()
        if self.count_for_day(day) >= self.capacity:
            logger.warning(f"Tag {day} ist voll ({self.capacity} Slots) – {slot} nicht gespeichert")
            return False
        self._slots[slot.begin] = slot
        logger.debug(f"Slot {slot} vergeben an {slot.product_id}")
        return True

    def add_slot(self, begin: datetime, product_id: Optional[uuid.UUID] = None) -> bool:
        """Direktes Einfügen eines Slots ab begin (Ortszeit, falls ohne Zeitzone).

        Zeitpunkte in anderen Zonen werden in die Lager-Zeitzone umgerechnet.
        """
        if begin.tzinfo is None:
            begin = begin.replace(tzinfo=self.tz)
        else:
            begin = begin.astimezone(self.tz)
        slot = DeliverySlot.starting_at(begin, self.green_days)
        if product_id is not None:
            slot = slot.assign(product_id)
        return self.commit(slot)

    def reserve(self, day: date, product_id: uuid.UUID) -> Optional[DeliverySlot]:
        """Sucht und vergibt den nächsten freien Slot des Tages in einem Schritt.

        Suche und Speichern laufen unter einer Sperre, damit parallele Aufrufe
        weder Kapazität noch Überlappungsfreiheit verletzen.
        """
        with self._lock:
            slot = self.next_free_slot(day)
            if slot is None:
                return None
            slot = slot.assign(product_id)
            if not self.commit(slot):
                return None
            return slot

    # ─── Persistenz ───────────────────────────────────────────────────────────

    def snapshot(self) -> list[DeliverySlot]:
        """Kopie aller vergebenen Slots (für Speichern/Wiederherstellen)."""
        with self._lock:
            return self.slots()

    def restore(self, slots: Iterable[DeliverySlot]) -> int:
        """Ersetzt den Inhalt durch die gegebenen Slots. Gibt die Anzahl übernommener Slots zurück.

        Slots, die eine Invariante verletzen würden, werden verworfen.
        """
        with self._lock:
            self._slots.clear()
            restored = 0
            for slot in sorted(slots, key=lambda s: s.begin):
                if self.commit(slot):
                    restored += 1
        if restored:
            logger.info(f"{restored} Slots wiederhergestellt")
        return restored
