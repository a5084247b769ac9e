"""Datenmodell für ein Produkt mit Lieferbeschränkungen (Pydantic v2)."""

import uuid
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from config.defaults import ALL_WEEKDAYS, WEEKDAY_ALIASES

DEFAULT_NAMESPACE = "mathem.se"


class ProductType(str, Enum):
    NORMAL = "NORMAL"
    EXTERNAL = "EXTERNAL"
    TEMPORARY = "TEMPORARY"


def product_id_for(name: str, namespace: str = DEFAULT_NAMESPACE) -> uuid.UUID:
    """Deterministische ID aus Namensraum + Produktname (UUID Version 3)."""
    return uuid.uuid3(uuid.NAMESPACE_DNS, namespace + name)


def parse_weekday(value: Any) -> int:
    """Wandelt 0..6 oder einen Tagesnamen ("Mo", "friday", ...) in einen Wochentag um."""
    if isinstance(value, bool):
        raise ValueError(f"Ungültiger Wochentag: {value!r}")
    if isinstance(value, int):
        day = value
    else:
        key = str(value).strip().lower()
        if key.isdigit():
            day = int(key)
        elif key in WEEKDAY_ALIASES:
            day = WEEKDAY_ALIASES[key]
        else:
            raise ValueError(f"Unbekannter Wochentag: {value!r}")
    if not 0 <= day <= 6:
        raise ValueError(f"Ungültiger Wochentag {day} (erlaubt: 0=Mo bis 6=So)")
    return day


class Product(BaseModel):
    """Ein lieferbares Produkt.

    Unveränderlich nach der Erzeugung. Die ID ist ein opaker Schlüssel, der
    aus dem Namen abgeleitet wird: gleicher Name → gleiche ID.
    """

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    name: str
    type: ProductType = ProductType.NORMAL
    delivery_days: frozenset[int] = ALL_WEEKDAYS   # 0=Mo..6=So
    days_in_advance: int = Field(0, ge=0)          # Mindestvorlauf in Tagen

    @model_validator(mode="before")
    @classmethod
    def _derive_id(cls, data: Any) -> Any:
        # Katalogdateien dürfen die ID weglassen
        if isinstance(data, dict) and data.get("id") is None and isinstance(data.get("name"), str):
            data = dict(data)
            data["id"] = product_id_for(data["name"])
        return data

    @field_validator("delivery_days", mode="before")
    @classmethod
    def _parse_delivery_days(cls, v: Any) -> frozenset[int]:
        if isinstance(v, (str, int)):
            v = [v]
        if not isinstance(v, Iterable):
            raise ValueError(f"Liefertage müssen eine Liste sein, nicht {v!r}")
        return frozenset(parse_weekday(d) for d in v)

    @classmethod
    def create(
        cls,
        name: str,
        product_type: ProductType = ProductType.NORMAL,
        delivery_days: Optional[Iterable[int]] = None,
        days_in_advance: int = 0,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> "Product":
        """Fabrikmethode. Ohne Angaben: NORMAL, an allen Tagen lieferbar, kein Vorlauf."""
        return cls(
            id=product_id_for(name, namespace),
            name=name,
            type=product_type,
            delivery_days=ALL_WEEKDAYS if delivery_days is None else delivery_days,
            days_in_advance=days_in_advance,
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.type.value})"
