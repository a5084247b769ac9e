"""Priorisierte Reihenfolge der vergebenen Liefertermine.

Grüne Termine innerhalb des Grün-Fensters stehen oben (aufsteigend),
danach alle übrigen Termine aufsteigend.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, NamedTuple

from models.delivery_slot import DeliverySlot


class PrioritizedDate(NamedTuple):
    """Ein Eintrag der Ausgabeliste: (Zeitpunkt, grün?)."""

    timestamp: datetime
    is_green: bool


def green_limit(today: date, window_days: int, tz: tzinfo) -> datetime:
    """Beginn des Tages today + window_days; grüne Slots davor haben Vorrang."""
    return datetime.combine(today + timedelta(days=window_days), time(0), tzinfo=tz)


def is_high_priority(slot: DeliverySlot, today: date, window_days: int) -> bool:
    """True wenn der Slot grün ist und vor dem Ende des Grün-Fensters beginnt."""
    return slot.is_green and slot.begin < green_limit(today, window_days, slot.begin.tzinfo)


def sort_slots(slots: Iterable[DeliverySlot], today: date, window_days: int = 3) -> list[DeliverySlot]:
    """Sortiert nach (Priorität, Beginn): zwei Stufen, innerhalb jeder Stufe aufsteigend."""
    return sorted(slots, key=lambda s: (not is_high_priority(s, today, window_days), s.begin))


def prioritize(
    slots: Iterable[DeliverySlot],
    today: date,
    green_window_days: int = 3,
    output_tz: tzinfo = timezone.utc,
) -> list[PrioritizedDate]:
    """Ausgabeliste (timestamp, is_green), timestamp in output_tz umgerechnet."""
    return [
        PrioritizedDate(s.begin.astimezone(output_tz), s.is_green)
        for s in sort_slots(slots, today, green_window_days)
    ]
