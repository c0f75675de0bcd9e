# Wire types and graph state for the travel assistant

from typing import Any, TypedDict, List, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


# ============================================================
# PART 1: REQUEST / RESPONSE CONTRACT
# ============================================================

class TripData(BaseModel):
    """Ambient trip context read from client storage. Passed through untouched."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    budget: Optional[Any] = None
    travel_style: Optional[str] = Field(None, alias="travelStyle")
    group_size: Optional[Any] = Field(None, alias="groupSize")


class AssistantRequest(BaseModel):
    """Body of POST /travel-assistant."""
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="The traveller's question")
    # Client-storage snapshot; only day, title, time and location are read
    itinerary: Optional[List[Dict[str, Any]]] = None
    trip_data: Optional[TripData] = Field(None, alias="tripData")
    selected_day: Optional[int] = Field(None, alias="selectedDay")
    user_location: Optional[Any] = Field(None, alias="userLocation")


class AssistantResponse(BaseModel):
    response: str
    success: bool
    error: Optional[str] = None


# ============================================================
# PART 2: PERSISTED INTERACTION HISTORY
# ============================================================

class InteractionContext(TypedDict):
    selected_day: Optional[int]
    itinerary_count: int


class InteractionRecord(TypedDict):
    id: str
    timestamp: str  # ISO 8601
    user_message: str
    ai_response: str
    context: InteractionContext


# ============================================================
# PART 3: GRAPH STATE
# ============================================================

class AssistantState(TypedDict, total=False):
    # Inputs
    message: str
    itinerary: Optional[List[Dict[str, Any]]]
    trip_data: Optional[Dict[str, Any]]
    selected_day: Optional[int]
    user_location: Optional[Any]

    # Context gathered along the way
    activities: Optional[List[Dict[str, Any]]]
    system_prompt: str
    user_prompt: str

    # Output
    assistant_response: str

    # Errors
    errors: List[str]
