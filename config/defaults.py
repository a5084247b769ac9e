from config.schema import (
    DeliveryHoursConfig,
    GreenPolicyConfig,
    ProductRulesConfig,
    SchedulingConfig,
    ShopConfig,
)


# Kurznamen der Wochentage (Index = Python-Wochentag)
WEEKDAY_NAMES = ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"]

# Zusätzlich akzeptierte Schreibweisen beim Katalog-Import
WEEKDAY_ALIASES: dict[str, int] = {
    "mo": 0, "mon": 0, "montag": 0, "monday": 0,
    "di": 1, "tue": 1, "dienstag": 1, "tuesday": 1,
    "mi": 2, "wed": 2, "mittwoch": 2, "wednesday": 2,
    "do": 3, "thu": 3, "donnerstag": 3, "thursday": 3,
    "fr": 4, "fri": 4, "freitag": 4, "friday": 4,
    "sa": 5, "sat": 5, "samstag": 5, "saturday": 5,
    "so": 6, "sun": 6, "sonntag": 6, "sunday": 6,
}

ALL_WEEKDAYS = frozenset(range(7))


def weekday_label(days) -> str:
    """Formatiert eine Menge von Wochentagen, z.B. "Mo, Mi, Fr"."""
    return ", ".join(WEEKDAY_NAMES[d] for d in sorted(days))


def default_delivery_hours() -> DeliveryHoursConfig:
    """Standard-Lieferfenster: 09:00 bis 20:00, stündlich.

    Lieferstunden 9, 10, ..., 19 → 11 Lieferungen pro Tag.
    """
    return DeliveryHoursConfig(first_hour=9, last_hour=19)


def default_green_policy() -> GreenPolicyConfig:
    """Freitag bis Sonntag sind grüne Liefertage, Vorzug innerhalb 3 Tagen."""
    return GreenPolicyConfig(green_days=[4, 5, 6], window_days=3)


def default_shop_config() -> ShopConfig:
    """Vollständige Default-Konfiguration."""
    return ShopConfig(
        shop_name="Muster-Lebensmittel",
        delivery=default_delivery_hours(),
        green=default_green_policy(),
        products=ProductRulesConfig(),
        scheduling=SchedulingConfig(),
    )
