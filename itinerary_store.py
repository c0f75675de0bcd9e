"""
Itinerary Store

In-memory ordered collection of scheduled items for a Mauritius trip.

- Items are partitioned by day number; each day is an independently
  orderable sequence (the "day partition").
- Storage order is the single source of truth for ordering: a day's view is
  the stored sequence filtered by day.
- Locked items keep their position inside their day; reorder rejects any
  move that would shift one.
- Every successful mutation is appended to `history`.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from logger_config import setup_logger

logger = setup_logger(__name__)


Category = Literal["activity", "meal", "transport", "accommodation"]

CATEGORIES: Tuple[str, ...] = ("activity", "meal", "transport", "accommodation")

CATEGORY_ICONS: Dict[str, str] = {
    "activity": "🏃‍♂️",
    "meal": "🍽️",
    "transport": "🚗",
    "accommodation": "🏨",
}
DEFAULT_ICON = "📍"

# Centre of the island, used when an item is added without coordinates
MAURITIUS_CENTER: Tuple[float, float] = (-20.348404, 57.552152)


# =============================================================================
# Errors
# =============================================================================

class ItineraryError(Exception):
    """Base class for itinerary store failures."""


class ItemNotFoundError(ItineraryError):
    def __init__(self, item_id: str):
        super().__init__(f"No itinerary item with id '{item_id}'")
        self.item_id = item_id


class DuplicateItemError(ItineraryError):
    def __init__(self, item_id: str):
        super().__init__(f"Itinerary item id '{item_id}' already exists")
        self.item_id = item_id


class InvalidIndexError(ItineraryError):
    def __init__(self, day: int, index: int, size: int):
        super().__init__(f"Index {index} out of range for day {day} ({size} items)")
        self.day = day
        self.index = index
        self.size = size


class ItemLockedError(ItineraryError):
    def __init__(self, item_id: str):
        super().__init__(f"Itinerary item '{item_id}' is locked and cannot change position")
        self.item_id = item_id


# =============================================================================
# Model
# =============================================================================

class ItineraryItem(BaseModel):
    """One scheduled entry. Serialized with the client's camelCase keys."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    day: int = Field(..., ge=1)
    title: str
    description: str = ""
    time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="HH:MM")
    location: str = ""
    coordinates: Tuple[float, float]
    is_locked: bool = Field(False, alias="isLocked")
    category: Category = "activity"

    @property
    def icon(self) -> str:
        return CATEGORY_ICONS.get(self.category, DEFAULT_ICON)


# =============================================================================
# Store
# =============================================================================

class ItineraryStore:
    """Single-owner, synchronous store of itinerary items."""

    def __init__(self, items: Optional[List[Any]] = None):
        self._items: List[ItineraryItem] = []
        self.history: List[Dict[str, Any]] = []
        for raw in items or []:
            item = raw if isinstance(raw, ItineraryItem) else ItineraryItem.model_validate(raw)
            if self._index_of(item.id) is not None:
                raise DuplicateItemError(item.id)
            self._items.append(item)

    def __len__(self) -> int:
        return len(self._items)

    def _index_of(self, item_id: str) -> Optional[int]:
        for i, item in enumerate(self._items):
            if item.id == item_id:
                return i
        return None

    def _record(self, action: str, item_id: Optional[str], day: int, **detail: Any) -> None:
        self.history.append({
            "action": action,
            "item_id": item_id,
            "day": day,
            "detail": detail,
            "timestamp": datetime.now().isoformat(),
        })

    def snapshot(self) -> List[ItineraryItem]:
        return list(self._items)

    def get_item(self, item_id: str) -> ItineraryItem:
        index = self._index_of(item_id)
        if index is None:
            raise ItemNotFoundError(item_id)
        return self._items[index]

    def items_for_day(self, day: int) -> List[ItineraryItem]:
        """Items whose day equals `day`, in stored order."""
        return [item for item in self._items if item.day == day]

    def days_present(self) -> List[int]:
        """Distinct day numbers, ascending."""
        return sorted({item.day for item in self._items})

    def reorder(self, day: int, from_index: int, to_index: int) -> List[ItineraryItem]:
        """
        Move the item at `from_index` of the day's sequence to `to_index`.

        Items of other days keep their slots in the stored sequence; the
        day's items are written back into the slots the day already occupied.

        Raises:
            InvalidIndexError: either index is outside the day's sequence.
            ItemLockedError: a locked item of that day would change position.
        """
        day_items = self.items_for_day(day)
        size = len(day_items)
        for index in (from_index, to_index):
            if not 0 <= index < size:
                raise InvalidIndexError(day, index, size)

        if from_index == to_index:
            return day_items

        reordered = list(day_items)
        moved = reordered.pop(from_index)
        reordered.insert(to_index, moved)

        for position, item in enumerate(day_items):
            if item.is_locked and reordered[position].id != item.id:
                logger.info(f"Rejected reorder on day {day}: item {item.id} is locked")
                raise ItemLockedError(item.id)

        slots = iter(reordered)
        self._items = [next(slots) if item.day == day else item for item in self._items]

        self._record("reorder", moved.id, day, from_index=from_index, to_index=to_index)
        logger.debug(f"Day {day} reordered: {[item.id for item in reordered]}")
        return reordered

    def toggle_lock(self, item_id: str) -> Optional[ItineraryItem]:
        """Flip the lock flag. Unknown ids are ignored and return None."""
        index = self._index_of(item_id)
        if index is None:
            logger.debug(f"toggle_lock ignored unknown id {item_id}")
            return None

        current = self._items[index]
        updated = current.model_copy(update={"is_locked": not current.is_locked})
        self._items[index] = updated
        self._record("toggle_lock", item_id, updated.day, is_locked=updated.is_locked)
        return updated

    def add_item(
        self,
        day: int,
        title: str,
        time: str,
        description: str = "",
        location: str = "",
        coordinates: Optional[Tuple[float, float]] = None,
        category: str = "activity",
        item_id: Optional[str] = None,
    ) -> ItineraryItem:
        """Append a new unlocked item at the end of its day."""
        item_id = item_id or uuid.uuid4().hex
        if self._index_of(item_id) is not None:
            raise DuplicateItemError(item_id)

        item = ItineraryItem(
            id=item_id,
            day=day,
            title=title,
            description=description,
            time=time,
            location=location,
            coordinates=coordinates or MAURITIUS_CENTER,
            is_locked=False,
            category=category,
        )
        self._items.append(item)
        self._record("add", item.id, day, title=title)
        logger.info(f"Added item {item.id} '{title}' to day {day}")
        return item


# =============================================================================
# Seed data
# =============================================================================

SEED_ITINERARY: List[Dict[str, Any]] = [
    {
        "id": "1",
        "day": 1,
        "title": "Arrival & Check-in",
        "description": "Airport pickup and hotel check-in at Le Morne",
        "time": "14:00",
        "location": "Le Morne Brabant",
        "coordinates": (-20.4569, 57.3108),
        "isLocked": False,
        "category": "accommodation",
    },
    {
        "id": "2",
        "day": 1,
        "title": "Sunset Beach Walk",
        "description": "Romantic walk along Le Morne beach with stunning sunset views",
        "time": "18:00",
        "location": "Le Morne Beach",
        "coordinates": (-20.4569, 57.3108),
        "isLocked": False,
        "category": "activity",
    },
    {
        "id": "3",
        "day": 2,
        "title": "Underwater Sea Walk",
        "description": "Explore marine life without diving skills at Blue Bay",
        "time": "09:00",
        "location": "Blue Bay Marine Park",
        "coordinates": (-20.4667, 57.7167),
        "isLocked": False,
        "category": "activity",
    },
    {
        "id": "4",
        "day": 2,
        "title": "Creole Lunch",
        "description": "Authentic Mauritian cuisine at local restaurant",
        "time": "13:00",
        "location": "Mahebourg",
        "coordinates": (-20.4082, 57.7000),
        "isLocked": False,
        "category": "meal",
    },
    {
        "id": "5",
        "day": 3,
        "title": "Chamarel Seven Colored Earth",
        "description": "Visit the famous geological formation and Chamarel Waterfall",
        "time": "10:00",
        "location": "Chamarel",
        "coordinates": (-20.4225, 57.3756),
        "isLocked": False,
        "category": "activity",
    },
]


def seed_store() -> ItineraryStore:
    """Fresh store loaded with the static seed itinerary."""
    return ItineraryStore(SEED_ITINERARY)
