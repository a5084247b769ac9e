"""Datenmodell für ein einstündiges Lieferfenster."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Optional

SLOT_DURATION = timedelta(hours=1)


@dataclass(frozen=True)
class DeliverySlot:
    """Ein Lieferfenster [begin, begin + 1h).

    Zwei Slots sind gleich, wenn ihr Beginn gleich ist. Immutable
    (frozen=True) damit es als Dict-Key / Set-Element nutzbar ist; die
    einmalige Produktzuordnung erzeugt eine Kopie (siehe assign()).
    """

    # Zeitzonenbehafteter Beginn, immer zur vollen Stunde
    begin: datetime
    # Wird beim Erzeugen aus dem Wochentag von begin abgeleitet
    is_green: bool = field(default=False, compare=False)
    # Produkt, das in diesem Fenster geliefert wird (None = noch frei)
    product_id: Optional[uuid.UUID] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.begin.tzinfo is None:
            raise ValueError(f"Slot-Beginn ohne Zeitzone: {self.begin}")

    @classmethod
    def starting_at(cls, begin: datetime, green_days: Iterable[int]) -> "DeliverySlot":
        """Erzeugt einen Slot ab begin; grün, wenn der Wochentag in green_days liegt."""
        return cls(begin=begin, is_green=begin.weekday() in set(green_days))

    @classmethod
    def at(cls, day: date, hour: int, tz: tzinfo, green_days: Iterable[int]) -> "DeliverySlot":
        """Slot am Kalendertag day zur vollen Stunde hour (Ortszeit tz)."""
        return cls.starting_at(datetime.combine(day, time(hour), tzinfo=tz), green_days)

    @property
    def end(self) -> datetime:
        return self.begin + SLOT_DURATION

    @property
    def day(self) -> date:
        """Kalendertag des Slots in seiner eigenen Zeitzone."""
        return self.begin.date()

    @property
    def is_assigned(self) -> bool:
        return self.product_id is not None

    def assign(self, product_id: uuid.UUID) -> "DeliverySlot":
        """Gibt eine Kopie zurück, die dem Produkt zugeordnet ist."""
        if self.product_id is not None:
            raise ValueError(f"Slot {self} ist bereits an {self.product_id} vergeben")
        return replace(self, product_id=product_id)

    def __str__(self) -> str:
        return f"{self.begin:%Y-%m-%d %H:%M}–{self.end:%H:%M}"
