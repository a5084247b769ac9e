"""ProductCatalog: Produktliste mit JSON/YAML-Persistenz (Pydantic v2)."""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError
from ruamel.yaml import YAML

from models.product import DEFAULT_NAMESPACE, Product, product_id_for


class ProductCatalog(BaseModel):
    """Alle Produkte eines Planungslaufs."""

    products: list[Product] = []
    namespace: str = DEFAULT_NAMESPACE

    def __len__(self) -> int:
        return len(self.products)

    def summary(self) -> str:
        """Kurze Übersicht: Anzahl Produkte je Typ."""
        counts: dict[str, int] = {}
        for p in self.products:
            counts[p.type.value] = counts.get(p.type.value, 0) + 1
        parts = ", ".join(f"{k}: {v}" for k, v in sorted(counts.items()))
        return f"Produkte: {len(self.products)}" + (f" ({parts})" if parts else "")

    # ─── Persistenz ───

    def save_json(self, path: Path) -> None:
        """Speichert den Katalog als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.model_dump_json(indent=2))

    @classmethod
    def from_raw(cls, raw: Any, namespace: Optional[str] = None) -> "ProductCatalog":
        """Baut den Katalog aus geparsten Rohdaten (dict oder Liste von Produkten).

        Fehlende Produkt-IDs werden aus Namensraum + Name abgeleitet.
        """
        if isinstance(raw, list):
            raw = {"products": raw}
        if not isinstance(raw, dict):
            raise ValueError("Katalog muss ein Objekt oder eine Liste von Produkten sein.")
        raw = dict(raw)
        ns = namespace or raw.get("namespace") or DEFAULT_NAMESPACE
        raw["namespace"] = ns
        items = raw.get("products") or []
        if not isinstance(items, list):
            raise ValueError("Katalog ungültig: 'products' muss eine Liste sein.")
        products = []
        for i, item in enumerate(items, start=1):
            if not isinstance(item, dict):
                raise ValueError(f"Katalog ungültig: Eintrag {i} ist kein Produkt-Objekt ({item!r})")
            item = dict(item)
            if item.get("id") is None and isinstance(item.get("name"), str):
                item["id"] = product_id_for(item["name"], ns)
            products.append(item)
        raw["products"] = products
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Katalog ungültig:\n{e}") from e

    @classmethod
    def load(cls, path: Path, namespace: Optional[str] = None) -> "ProductCatalog":
        """Lädt einen Katalog aus .json oder .yaml/.yml."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Katalog nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                raw = YAML(typ="safe").load(f)
            else:
                raw = json.load(f)
        return cls.from_raw(raw, namespace=namespace)
