"""Planungs-Modul: Kandidatentage, Slot-Speicher, First-Fit-Planer, Priorisierung."""

from .candidate_days import possible_days
from .slot_store import DeliverySlotStore, overlaps
from .prioritizer import PrioritizedDate, prioritize
from .scheduler import DeliveryScheduler, ScheduleResult, ScheduleEntry

__all__ = [
    "possible_days",
    "DeliverySlotStore",
    "overlaps",
    "PrioritizedDate",
    "prioritize",
    "DeliveryScheduler",
    "ScheduleResult",
    "ScheduleEntry",
]
