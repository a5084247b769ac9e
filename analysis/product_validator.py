"""Produktprüfung vor der Terminvergabe.

Ungültige Produkte sind kein Fehler: sie werden vor der Planung aussortiert
und im Bericht mit Begründung aufgeführt.
"""

from typing import Iterable, Optional

from pydantic import BaseModel

from config.defaults import weekday_label
from config.schema import ProductRulesConfig
from models.product import Product, ProductType


class ExcludedProduct(BaseModel):
    """Ein aussortiertes Produkt mit Begründung."""

    product: Product
    reason: str


class ProductValidationReport(BaseModel):
    """Ergebnis der Produktprüfung."""

    valid: list[Product]
    excluded: list[ExcludedProduct]

    @property
    def all_valid(self) -> bool:
        return not self.excluded

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        lines = [
            f"[bold green]✓ {len(self.valid)} gültig[/bold green]  |  "
            f"[bold yellow]✗ {len(self.excluded)} aussortiert[/bold yellow]"
        ]
        if self.excluded:
            lines.append("\n[yellow bold]Aussortiert:[/yellow bold]")
            for e in self.excluded:
                lines.append(f"  [yellow]• {e.product.name}: {e.reason}[/yellow]")
        else:
            lines.append("[dim]Alle Produkte sind lieferbar.[/dim]")

        console.print(Panel("\n".join(lines), title="Produktprüfung", border_style="cyan"))


class ProductValidator:
    """Prüft die Lieferbeschränkungen eines Produkts auf Widerspruchsfreiheit."""

    def __init__(self, rules: Optional[ProductRulesConfig] = None) -> None:
        self.rules = rules or ProductRulesConfig()

    def explain(self, product: Product) -> Optional[str]:
        """Begründung, warum das Produkt ungültig ist, oder None wenn gültig."""
        if product.type == ProductType.EXTERNAL:
            min_days = self.rules.external_min_days_in_advance
            if product.days_in_advance < min_days:
                return (
                    f"Externe Produkte brauchen mindestens {min_days} Tage Vorlauf "
                    f"(angegeben: {product.days_in_advance})"
                )
        elif product.type == ProductType.TEMPORARY:
            # TODO: Geschäftsregel klären – gemeint ist evtl. "nur in der laufenden
            # Woche bestellbar"; geprüft wird derzeit nur die Wochenend-Sperre.
            blocked = product.delivery_days & set(self.rules.temporary_excluded_days)
            if blocked:
                return (
                    f"Temporäre Produkte dürfen nicht an {weekday_label(blocked)} "
                    f"lieferbar sein"
                )
        return None

    def is_valid(self, product: Product) -> bool:
        return self.explain(product) is None

    def validate(self, products: Iterable[Product]) -> ProductValidationReport:
        """Teilt die Produkte in gültige und aussortierte auf (Reihenfolge bleibt erhalten)."""
        valid: list[Product] = []
        excluded: list[ExcludedProduct] = []
        for p in products:
            reason = self.explain(p)
            if reason is None:
                valid.append(p)
            else:
                excluded.append(ExcludedProduct(product=p, reason=reason))
        return ProductValidationReport(valid=valid, excluded=excluded)
