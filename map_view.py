"""
Map rendering for a day's itinerary.

Consumes an ordered sequence of items and produces the marker layer a map
widget draws: one numbered marker per item, colored and iconed by category,
with an HTML popup, plus the bounds the view should fit. Every call to
`MapView.update` replaces the whole marker layer.
"""

from html import escape
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pydeck as pdk

from itinerary_store import CATEGORY_ICONS, DEFAULT_ICON, MAURITIUS_CENTER, ItineraryItem

CATEGORY_COLORS: Dict[str, str] = {
    "activity": "#1e40af",
    "meal": "#ea580c",
    "transport": "#059669",
    "accommodation": "#7c3aed",
}
DEFAULT_COLOR = "#64748b"

DEFAULT_ZOOM = 10
TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
ATTRIBUTION = "© OpenStreetMap contributors"
BOUNDS_PADDING = 0.1

Bounds = Tuple[Tuple[float, float], Tuple[float, float]]


def _hex_to_rgb(color: str) -> List[int]:
    color = color.lstrip("#")
    return [int(color[i:i + 2], 16) for i in (0, 2, 4)]


def popup_html(item: ItineraryItem) -> str:
    color = CATEGORY_COLORS.get(item.category, DEFAULT_COLOR)
    icon = CATEGORY_ICONS.get(item.category, DEFAULT_ICON)
    return (
        '<div style="min-width: 200px;">'
        '<div style="display: flex; align-items: center; gap: 8px; margin-bottom: 8px;">'
        f'<span style="font-size: 16px;">{icon}</span>'
        f'<strong style="color: {color};">{escape(item.time)}</strong>'
        "</div>"
        f'<h3 style="margin: 0 0 4px 0; font-size: 16px; font-weight: bold;">{escape(item.title)}</h3>'
        f'<p style="margin: 0 0 8px 0; color: #666; font-size: 14px;">{escape(item.description)}</p>'
        f'<div style="color: #888; font-size: 12px;">📍 {escape(item.location)}</div>'
        "</div>"
    )


def build_markers(items: Sequence[ItineraryItem]) -> List[Dict[str, Any]]:
    """Marker descriptors in item order; labels are 1-based positions."""
    markers = []
    for index, item in enumerate(items):
        color = CATEGORY_COLORS.get(item.category, DEFAULT_COLOR)
        markers.append({
            "id": item.id,
            "label": str(index + 1),
            "lat": item.coordinates[0],
            "lon": item.coordinates[1],
            "category": item.category,
            "color": color,
            "rgb": _hex_to_rgb(color),
            "icon": CATEGORY_ICONS.get(item.category, DEFAULT_ICON),
            "popup": popup_html(item),
        })
    return markers


def fit_bounds(items: Sequence[ItineraryItem], padding: float = BOUNDS_PADDING) -> Optional[Bounds]:
    """South-west / north-east corners around all items, grown by `padding` of each span."""
    if not items:
        return None

    lats = [item.coordinates[0] for item in items]
    lons = [item.coordinates[1] for item in items]
    lat_pad = (max(lats) - min(lats)) * padding
    lon_pad = (max(lons) - min(lons)) * padding
    return (
        (min(lats) - lat_pad, min(lons) - lon_pad),
        (max(lats) + lat_pad, max(lons) + lon_pad),
    )


class MapView:
    """Holds the current marker layer; `update` swaps it wholesale."""

    def __init__(self, center: Tuple[float, float] = MAURITIUS_CENTER, zoom: int = DEFAULT_ZOOM):
        self.center = center
        self.zoom = zoom
        self.markers: List[Dict[str, Any]] = []
        self.bounds: Optional[Bounds] = None

    def update(self, items: Sequence[ItineraryItem]) -> "MapView":
        self.markers = build_markers(items)
        self.bounds = fit_bounds(items)
        if self.bounds:
            (south, west), (north, east) = self.bounds
            self.center = ((south + north) / 2, (west + east) / 2)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": list(self.center),
            "zoom": self.zoom,
            "bounds": [list(corner) for corner in self.bounds] if self.bounds else None,
            "tile_url": TILE_URL,
            "attribution": ATTRIBUTION,
            "markers": self.markers,
        }

    def to_deck(self) -> pdk.Deck:
        """pydeck rendering of the current layer (numbered category-colored dots)."""
        layers = [
            pdk.Layer(
                "ScatterplotLayer",
                data=self.markers,
                get_position=["lon", "lat"],
                get_fill_color="rgb",
                get_radius=400,
                pickable=True,
            ),
            pdk.Layer(
                "TextLayer",
                data=self.markers,
                get_position=["lon", "lat"],
                get_text="label",
                get_color=[255, 255, 255, 255],
                get_size=14,
            ),
        ]
        return pdk.Deck(
            map_style=None,
            initial_view_state=pdk.ViewState(
                latitude=self.center[0],
                longitude=self.center[1],
                zoom=self.zoom,
            ),
            layers=layers,
            tooltip={"html": "{popup}"},
        )
