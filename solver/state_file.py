"""Speichern und Wiederherstellen der vergebenen Slots zwischen Planungsläufen."""

import json
import logging
import os
import tempfile
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError

from models.delivery_slot import DeliverySlot
from solver.slot_store import DeliverySlotStore

logger = logging.getLogger(__name__)


class StoredSlot(BaseModel):
    """Ein vergebener Slot im Zustandsfile."""

    begin: datetime
    product_id: Optional[uuid.UUID] = None


class StoreState(BaseModel):
    slots: list[StoredSlot] = []


def save_state(store: DeliverySlotStore, path: Path) -> None:
    """Schreibt alle Slots des Speichers atomar als JSON."""
    path = Path(path)
    state = StoreState(slots=[
        StoredSlot(begin=s.begin, product_id=s.product_id) for s in store.snapshot()
    ])
    folder = path.parent.resolve()
    folder.mkdir(parents=True, exist_ok=True)

    # Atomares Schreiben: erst Temp-Datei, dann umbenennen
    with tempfile.NamedTemporaryFile(
        "w", delete=False, encoding="utf-8", dir=folder, suffix=".tmp"
    ) as tf:
        tf.write(state.model_dump_json(indent=2))
        tmp_name = tf.name
    os.replace(tmp_name, path)
    logger.info(f"Zustand gespeichert: {path} ({len(state.slots)} Slots)")


def load_state(store: DeliverySlotStore, path: Path) -> int:
    """Stellt den Speicher aus einem Zustandsfile wieder her.

    Fehlt die Datei, bleibt der Speicher leer (0). Eine beschädigte Datei ist
    ein Fehler (ValueError).
    """
    path = Path(path)
    if not path.exists():
        return 0
    try:
        with open(path, "r", encoding="utf-8") as f:
            state = StoreState.model_validate(json.load(f))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Zustandsdatei ungültig: {path}\n{e}") from e

    slots = []
    for item in state.slots:
        slot = DeliverySlot.starting_at(item.begin.astimezone(store.tz), store.green_days)
        if item.product_id is not None:
            slot = slot.assign(item.product_id)
        slots.append(slot)
    restored = store.restore(slots)
    if restored < len(slots):
        logger.warning(f"{len(slots) - restored} Slots aus {path} verletzen das Lieferraster")
    return restored
