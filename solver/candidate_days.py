"""Mögliche Liefertage eines Produkts innerhalb des Planungshorizonts."""

from datetime import date, timedelta

from models.product import Product


def possible_days(product: Product, today: date, horizon_days: int = 14) -> list[date]:
    """Alle Tage, an denen das Produkt frühestens geliefert werden könnte.

    Berücksichtigt:
    - den Mindestvorlauf (days_in_advance): frühester Tag ist today + days_in_advance
    - keine Lieferung am selben Tag: frühester Tag ist immer today + 1
    - den Horizont: letzter Tag ist today + horizon_days (inklusive)
    - die erlaubten Wochentage des Produkts

    Die Liste ist aufsteigend sortiert und hängt nur von den Argumenten ab.
    """
    if horizon_days < 1:
        raise ValueError(f"horizon_days muss >= 1 sein, nicht {horizon_days}")
    if product.days_in_advance >= horizon_days:
        return []

    first = max(product.days_in_advance, 1)
    days = []
    for offset in range(first, horizon_days + 1):
        day = today + timedelta(days=offset)
        if day.weekday() in product.delivery_days:
            days.append(day)
    return days
