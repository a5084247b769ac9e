from pydantic import BaseModel, Field, field_validator, model_validator


# Python-Wochentage: 0=Montag ... 6=Sonntag
MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)


def _check_weekdays(days: list[int]) -> list[int]:
    for d in days:
        if not 0 <= d <= 6:
            raise ValueError(f"Ungültiger Wochentag {d} (erlaubt: 0=Mo bis 6=So)")
    return sorted(set(days))


# ─── LIEFERZEITEN ───

class DeliveryHoursConfig(BaseModel):
    """Stundenraster eines Liefertags.

    Jede volle Stunde von first_hour bis last_hour (inklusive) ist ein
    einstündiges Lieferfenster. Daraus ergibt sich die Tageskapazität.
    """
    # Beginn des ersten Lieferfensters (volle Stunde)
    first_hour: int = Field(9, ge=0, le=23,
        description="Erste Lieferstunde (inklusive)")
    # Beginn des letzten Lieferfensters (volle Stunde)
    last_hour: int = Field(19, ge=0, le=23,
        description="Letzte Lieferstunde (inklusive)")

    @model_validator(mode='after')
    def validate_hour_range(self):
        if self.first_hour > self.last_hour:
            raise ValueError(
                f"first_hour ({self.first_hour}) liegt nach last_hour ({self.last_hour})")
        return self

    @property
    def capacity(self) -> int:
        """Maximale Anzahl Lieferungen pro Tag."""
        return self.last_hour - self.first_hour + 1

    @property
    def hours(self) -> range:
        """Alle Lieferstunden in aufsteigender Reihenfolge."""
        return range(self.first_hour, self.last_hour + 1)


# ─── GRÜNE LIEFERTAGE ───

class GreenPolicyConfig(BaseModel):
    """Definition der umweltfreundlichen ("grünen") Liefertage."""
    # Wochentage, die als grün gelten
    green_days: list[int] = Field(
        default=[FRIDAY, SATURDAY, SUNDAY],
        description="Grüne Wochentage (0=Mo bis 6=So)")
    # Grüne Termine innerhalb dieses Fensters werden vorgezogen
    window_days: int = Field(3, ge=0,
        description="Fenster in Tagen für die Bevorzugung grüner Termine")

    @field_validator("green_days")
    @classmethod
    def normalize_green_days(cls, v: list[int]) -> list[int]:
        return _check_weekdays(v)


# ─── PRODUKTREGELN ───

class ProductRulesConfig(BaseModel):
    """Regeln der Produktprüfung vor der Terminvergabe."""
    # Externe Lieferanten brauchen diese Mindestvorlaufzeit
    external_min_days_in_advance: int = Field(5, ge=0,
        description="Mindestvorlauf in Tagen für externe Produkte")
    # Temporäre Produkte dürfen an diesen Tagen nicht lieferbar sein
    temporary_excluded_days: list[int] = Field(
        default=[SATURDAY, SUNDAY],
        description="Gesperrte Liefertage für temporäre Produkte")

    @field_validator("temporary_excluded_days")
    @classmethod
    def normalize_excluded_days(cls, v: list[int]) -> list[int]:
        return _check_weekdays(v)


# ─── PLANUNG ───

class SchedulingConfig(BaseModel):
    """Planungshorizont und Zeitzonen."""
    # Anzahl Tage ab heute, in denen Termine vergeben werden
    horizon_days: int = Field(14, ge=1, le=366,
        description="Planungshorizont in Tagen")
    # Zeitzone des Lagers (IANA-Name), bestimmt Kalendertage und Stunden
    timezone: str = Field("Europe/Stockholm",
        description="Zeitzone des Lagers")
    # Zeitzone für die Ausgabe der Termine
    output_timezone: str = Field("UTC",
        description="Zeitzone der ausgegebenen Termine")
    # Namensraum für die Ableitung der Produkt-IDs
    product_namespace: str = Field("mathem.se",
        description="Namensraum für deterministische Produkt-IDs")

    @field_validator("timezone", "output_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unbekannte Zeitzone: {v!r}") from e
        return v


# ─── GESAMT-CONFIG ───

class ShopConfig(BaseModel):
    """Gesamtkonfiguration der Lieferplanung."""
    # Anzeigename des Shops
    shop_name: str = Field("Muster-Lebensmittel",
        description="Name des Shops")
    delivery: DeliveryHoursConfig = Field(default_factory=DeliveryHoursConfig)
    green: GreenPolicyConfig = Field(default_factory=GreenPolicyConfig)
    products: ProductRulesConfig = Field(default_factory=ProductRulesConfig)
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
