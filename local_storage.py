"""
Client-side key/value storage.

String keys to string values, like a browser's local storage. Values are kept
in memory and, when a path is given, mirrored to a JSON file so they survive
restarts of the client.
"""

import json
import os
from typing import Any, Dict, List, Optional

ITINERARY_KEY = "itinerary"
TRIP_DATA_KEY = "tripData"
SELECTED_DAY_KEY = "selectedDay"


class LocalStorage:
    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._data: Dict[str, str] = {}
        if path and os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                self._data = {str(k): str(v) for k, v in json.load(f).items()}

    def _flush(self) -> None:
        if self.path:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def clear(self) -> None:
        self._data = {}
        self._flush()

    # Typed helpers for the planner's keys

    def save_itinerary(self, items: List[Dict[str, Any]]) -> None:
        self.set_item(ITINERARY_KEY, json.dumps(items, ensure_ascii=False))

    def save_trip_data(self, trip_data: Dict[str, Any]) -> None:
        self.set_item(TRIP_DATA_KEY, json.dumps(trip_data, ensure_ascii=False))

    def save_selected_day(self, day: int) -> None:
        self.set_item(SELECTED_DAY_KEY, str(day))


def read_context(storage: LocalStorage) -> Dict[str, Any]:
    """
    Assistant context from storage. Missing keys become None.

    Raises json.JSONDecodeError / ValueError on malformed values.
    """
    stored_itinerary = storage.get_item(ITINERARY_KEY)
    stored_trip_data = storage.get_item(TRIP_DATA_KEY)
    stored_selected_day = storage.get_item(SELECTED_DAY_KEY)

    return {
        "itinerary": json.loads(stored_itinerary) if stored_itinerary else None,
        "tripData": json.loads(stored_trip_data) if stored_trip_data else None,
        "selectedDay": int(stored_selected_day) if stored_selected_day else None,
    }
