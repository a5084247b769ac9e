"""Generator für Demo-Produktkataloge (reproduzierbar über Seed)."""

import random
from typing import Optional

from config.schema import ShopConfig
from models.catalog import ProductCatalog
from models.product import Product, ProductType

# ─── Namenslisten ─────────────────────────────────────────────────────────────

_PRODUCT_NAMES = [
    "Vollmilch", "Roggenbrot", "Bio-Eier", "Butter", "Joghurt natur",
    "Äpfel Elstar", "Bananen", "Karotten", "Kartoffeln festkochend",
    "Lachsfilet", "Hähnchenbrust", "Hackfleisch gemischt", "Gouda jung",
    "Kaffee Espresso", "Schwarztee", "Haferflocken", "Spaghetti",
    "Tomaten passiert", "Olivenöl", "Mineralwasser", "Orangensaft",
    "Spülmittel", "Waschmittel", "Toilettenpapier", "Blumenstrauß",
]

_SEASONAL_NAMES = [
    "Spargel weiß", "Erdbeeren", "Lebkuchen", "Kürbis Hokkaido",
    "Glühwein", "Osterlamm", "Grillkohle", "Federweißer",
]

# Typ-Verteilung (Gewichte)
_TYPE_WEIGHTS = [
    (ProductType.NORMAL, 6),
    (ProductType.EXTERNAL, 2),
    (ProductType.TEMPORARY, 2),
]


class FakeCatalogGenerator:
    """Erzeugt einen gemischten Produktkatalog auf Basis der ShopConfig.

    Ein Teil der externen und temporären Produkte verletzt absichtlich die
    Produktregeln, damit die Aussortierung sichtbar wird.
    """

    def __init__(self, config: ShopConfig, seed: Optional[int] = None) -> None:
        self.config = config
        self.rng = random.Random(seed)

    def _delivery_days(self, weekend: bool) -> frozenset[int]:
        days = {d for d in range(5) if self.rng.random() < 0.7} or {self.rng.randrange(5)}
        if weekend:
            days |= {d for d in (5, 6) if self.rng.random() < 0.6} or {5}
        return frozenset(days)

    def _make_product(self, name: str, product_type: ProductType) -> Product:
        horizon = self.config.scheduling.horizon_days
        min_external = self.config.products.external_min_days_in_advance

        if product_type == ProductType.EXTERNAL:
            # ~25 % mit zu kurzem Vorlauf
            if self.rng.random() < 0.25:
                days_in_advance = self.rng.randint(0, max(min_external - 1, 0))
            else:
                days_in_advance = self.rng.randint(min_external, min_external + 4)
            delivery_days = self._delivery_days(weekend=True)
        elif product_type == ProductType.TEMPORARY:
            days_in_advance = self.rng.randint(0, 3)
            # ~30 % auch am Wochenende lieferbar → werden aussortiert
            delivery_days = self._delivery_days(weekend=self.rng.random() < 0.3)
        else:
            # Einzelne Produkte mit Vorlauf jenseits des Horizonts
            if self.rng.random() < 0.05:
                days_in_advance = horizon + self.rng.randint(0, 3)
            else:
                days_in_advance = self.rng.choice([0, 0, 0, 1, 1, 2, 3])
            delivery_days = (
                frozenset(range(7)) if self.rng.random() < 0.6
                else self._delivery_days(weekend=True)
            )

        return Product.create(
            name,
            product_type=product_type,
            delivery_days=delivery_days,
            days_in_advance=days_in_advance,
            namespace=self.config.scheduling.product_namespace,
        )

    def generate(self, count: int = 20) -> ProductCatalog:
        """Erzeugt count Produkte. Namen sind eindeutig (laufende Nummer bei Wiederholung)."""
        types = [t for t, _ in _TYPE_WEIGHTS]
        weights = [w for _, w in _TYPE_WEIGHTS]
        used: dict[str, int] = {}
        products = []
        for _ in range(count):
            product_type = self.rng.choices(types, weights=weights)[0]
            pool = _SEASONAL_NAMES if product_type == ProductType.TEMPORARY else _PRODUCT_NAMES
            base = self.rng.choice(pool)
            used[base] = used.get(base, 0) + 1
            name = base if used[base] == 1 else f"{base} {used[base]}"
            products.append(self._make_product(name, product_type))
        return ProductCatalog(
            products=products,
            namespace=self.config.scheduling.product_namespace,
        )
