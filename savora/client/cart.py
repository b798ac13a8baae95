"""
Client-side grocery cart.

The cart lives entirely on the client: an ordered list of line items, one per
ingredient, each carrying a snapshot of the catalog price taken when it was
added. Every mutation writes the whole list to local storage, and a new Cart
rehydrates from it, so the persisted snapshot always matches the last change.
"""
import json
import logging
from pathlib import Path
from typing import List, NamedTuple

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "savora_cart"
TAX_RATE = 0.18  # GST


class CartItem(BaseModel):
    id: str = Field(..., alias="_id")
    name: str
    unit: str = "grams"
    pricePerUnit: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)

    model_config = {"populate_by_name": True}


class Totals(NamedTuple):
    subtotal: float
    tax: float
    total: float
    item_count: int


def compute_totals(lines, tax_rate: float = TAX_RATE) -> Totals:
    """Accepts CartItems or plain dicts with pricePerUnit/quantity."""
    subtotal = 0
    item_count = 0
    for line in lines:
        if isinstance(line, dict):
            price, quantity = line["pricePerUnit"], line["quantity"]
        else:
            price, quantity = line.pricePerUnit, line.quantity
        subtotal += price * quantity
        item_count += quantity
    tax = subtotal * tax_rate
    return Totals(subtotal, tax, subtotal + tax, item_count)


class LocalStorage:
    """Small JSON-file key/value store standing in for browser local storage."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable local storage file %s", self.path)
            return {}

    def get(self, key: str, default=None):
        return self._read().get(key, default)

    def set(self, key: str, value) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")


class Cart:
    def __init__(self, storage: LocalStorage | None = None):
        self.storage = storage
        self.items: List[CartItem] = []
        if storage is not None:
            for saved in storage.get(CART_STORAGE_KEY, []):
                try:
                    self.items.append(CartItem.model_validate(saved))
                except ValidationError:
                    logger.warning("Dropping invalid saved cart line %r", saved)

    def _save(self) -> None:
        if self.storage is not None:
            self.storage.set(CART_STORAGE_KEY, [i.model_dump(by_alias=True) for i in self.items])

    def _index(self, item_id: str) -> int | None:
        for idx, item in enumerate(self.items):
            if item.id == item_id:
                return idx
        return None

    def add_item(self, item, quantity: int = 1) -> None:
        """Add `quantity` of a catalog item; an existing line just grows."""
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        data = item.model_dump(by_alias=True) if isinstance(item, CartItem) else dict(item)
        idx = self._index(str(data["_id"]))
        if idx is not None:
            line = self.items[idx]
            self.items[idx] = line.model_copy(update={"quantity": line.quantity + quantity})
        else:
            # price/unit/name are a snapshot and are not re-synced with the catalog
            self.items.append(CartItem(
                _id=str(data["_id"]),
                name=data["name"],
                unit=data.get("unit", "grams"),
                pricePerUnit=data["pricePerUnit"],
                quantity=quantity,
            ))
        self._save()

    def remove_item(self, item_id: str) -> None:
        self.items = [i for i in self.items if i.id != item_id]
        self._save()

    def set_quantity(self, item_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(item_id)
            return
        idx = self._index(item_id)
        if idx is None:
            return
        self.items[idx] = self.items[idx].model_copy(update={"quantity": quantity})
        self._save()

    def increment(self, item_id: str) -> None:
        idx = self._index(item_id)
        if idx is not None:
            self.set_quantity(item_id, self.items[idx].quantity + 1)

    def decrement(self, item_id: str) -> None:
        idx = self._index(item_id)
        if idx is not None:
            self.set_quantity(item_id, self.items[idx].quantity - 1)

    def clear(self) -> None:
        self.items = []
        self._save()

    def get_item(self, item_id: str) -> CartItem | None:
        idx = self._index(item_id)
        return self.items[idx] if idx is not None else None

    def contains(self, item_id: str) -> bool:
        return self._index(item_id) is not None

    def totals(self) -> Totals:
        return compute_totals(self.items)
