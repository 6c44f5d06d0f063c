"""
Item Supply - read-only view of the item list feeding the sequencer.

The sequencer only needs a stable identifier per item; every other field
is carried along for the rendering layer. ``load_supply`` is the local
stand-in for the external data-fetch collaborator: it never raises, a
missing or malformed file becomes an erroring supply instead.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple
import json
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Item:
    """
    One presented item.

    Attributes:
        id: Stable identifier (used in render keys)
        title: Display title
        fields: Any further display fields (price, image URL, vendor...)
    """
    id: str
    title: str = ""
    fields: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "title": self.title}
        data.update(self.fields)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Item:
        if not isinstance(data, dict):
            raise TypeError(f"Item must be an object, got {type(data).__name__}")
        if "id" not in data:
            raise ValueError(f"Item is missing 'id': {data!r}")
        extra = {k: v for k, v in data.items() if k not in ("id", "title")}
        return cls(id=str(data["id"]), title=str(data.get("title", "")), fields=extra)


@dataclass(frozen=True)
class ItemSupply:
    """
    Snapshot delivered by the data source on every change.

    Attributes:
        items: Ordered items
        is_loading: True while the source is still fetching
        error: Error message when the fetch failed
    """
    items: Tuple[Item, ...] = ()
    is_loading: bool = False
    error: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    @classmethod
    def loading(cls) -> ItemSupply:
        return cls(is_loading=True)

    @classmethod
    def failed(cls, message: str) -> ItemSupply:
        return cls(error=message or "unknown error")

    @classmethod
    def ready(cls, items: Iterable[Item]) -> ItemSupply:
        return cls(items=tuple(items))

    @property
    def is_available(self) -> bool:
        """True when items can be presented (not loading, no error, non-empty)."""
        return not self.is_loading and self.error is None and len(self.items) > 0

    def __len__(self) -> int:
        return len(self.items)


def load_supply(path: Path | str, limit: Optional[int] = None) -> ItemSupply:
    """
    Read items from a JSON file.

    The file holds either a list of item objects or an object with an
    ``items`` list (and an optional ``limit``). An explicit *limit* wins
    over the file's.

    Returns:
        A ready supply, or a failed supply describing what went wrong
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("[supply] Item file not found: %s", path)
        return ItemSupply.failed(f"item file not found: {path}")
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("[supply] Failed to read %s: %s", path, exc)
        return ItemSupply.failed(f"failed to read {path.name}: {exc}")

    if isinstance(data, dict):
        raw_items = data.get("items", [])
        if limit is None:
            limit = data.get("limit")
    else:
        raw_items = data

    if not isinstance(raw_items, list):
        return ItemSupply.failed(f"{path.name}: 'items' must be a list")

    try:
        items = [Item.from_dict(entry) for entry in raw_items]
        if limit is not None:
            items = items[: max(0, int(limit))]
    except (TypeError, ValueError) as exc:
        logger.warning("[supply] Invalid item data in %s: %s", path, exc)
        return ItemSupply.failed(f"{path.name}: {exc}")

    logger.info("[supply] Loaded %d item(s) from %s", len(items), path)
    return ItemSupply.ready(items)
