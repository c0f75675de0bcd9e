"""
FastAPI Application for the Mauritius Trip Planner

Endpoints:
- POST /travel-assistant: Assistant Bridge (itinerary-aware chat answer)
- GET  /itinerary, /itinerary/days, /itinerary/days/{day}
- GET  /itinerary/days/{day}/map (marker layer JSON), /itinerary/days/{day}/map.html (pydeck page)
- POST /itinerary/days/{day}/reorder, /itinerary/items/{item_id}/toggle-lock
- POST /itinerary/items, /itinerary/share
- GET  /health

Itinerary State:
- One in-memory ItineraryStore seeded with the static Mauritius plan
- Handed to endpoints through the get_store dependency
"""

import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel, Field, ValidationError
from starlette.concurrency import run_in_threadpool

from graph import APOLOGY_RESPONSE, run_assistant
from itinerary_store import (
    Category,
    DuplicateItemError,
    InvalidIndexError,
    ItemLockedError,
    ItemNotFoundError,
    ItineraryError,
    ItineraryItem,
    ItineraryStore,
    seed_store,
)
from logger_config import setup_logger
from map_view import MapView
from settings import settings
from stategraph import AssistantRequest, AssistantResponse
from supabase_client import persist_interaction

logger = setup_logger(__name__)


# =============================================================================
# FastAPI App Setup
# =============================================================================

app = FastAPI(
    title="Mauritius Trip Planner API",
    description="Reorderable daily itinerary, map layers and an itinerary-aware travel assistant",
    version="1.0.0",
)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Answer preflights with an empty body; stamp CORS headers on everything else."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


# =============================================================================
# Itinerary Store (In-Memory)
# =============================================================================

_store: ItineraryStore = seed_store()


def get_store() -> ItineraryStore:
    return _store


def _to_http_error(error: ItineraryError) -> HTTPException:
    if isinstance(error, ItemNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidIndexError):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, (ItemLockedError, DuplicateItemError)):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


def _timeline_entry(item: ItineraryItem) -> Dict[str, Any]:
    entry = item.model_dump(by_alias=True)
    entry["icon"] = item.icon
    return entry


# =============================================================================
# Request/Response Models
# =============================================================================

class ReorderRequest(BaseModel):
    from_index: int = Field(..., description="Position of the item within the day")
    to_index: int = Field(..., description="Position to move it to")


class AddItemRequest(BaseModel):
    day: int = Field(..., ge=1)
    title: str
    time: str = Field(..., description="HH:MM")
    description: str = ""
    location: str = ""
    coordinates: Optional[Tuple[float, float]] = None
    category: Category = "activity"


class DayResponse(BaseModel):
    day: int
    items: List[Dict[str, Any]]


class HealthResponse(BaseModel):
    status: str
    service: str
    timestamp: str


# =============================================================================
# Assistant Endpoint
# =============================================================================

@app.post("/travel-assistant")
async def travel_assistant(request: Request, background_tasks: BackgroundTasks):
    """
    Assistant Bridge.

    Flow:
    1. Parse message + itinerary / trip data / selected day context
    2. Run the assistant graph (activities -> prompts -> completion model)
    3. Schedule persistence of the exchange for authenticated callers
    4. Return {response, success}
    """
    try:
        payload = AssistantRequest.model_validate(await request.json())
        answer = await run_in_threadpool(run_assistant, payload)

        background_tasks.add_task(
            persist_interaction,
            request.headers.get("authorization"),
            payload.message,
            answer,
            payload.selected_day,
            len(payload.itinerary or []),
        )

        return AssistantResponse(response=answer, success=True).model_dump(exclude_none=True)

    except Exception as e:
        logger.error(f"Travel Assistant Error: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=AssistantResponse(
                error=str(e), response=APOLOGY_RESPONSE, success=False
            ).model_dump(),
        )


# =============================================================================
# Itinerary Endpoints
# =============================================================================

@app.get("/itinerary")
async def get_itinerary(store: ItineraryStore = Depends(get_store)):
    return [_timeline_entry(item) for item in store.snapshot()]


@app.get("/itinerary/days")
async def get_days(store: ItineraryStore = Depends(get_store)):
    return {"days": store.days_present()}


@app.get("/itinerary/days/{day}", response_model=DayResponse)
async def get_day(day: int, store: ItineraryStore = Depends(get_store)):
    return DayResponse(day=day, items=[_timeline_entry(item) for item in store.items_for_day(day)])


@app.get("/itinerary/days/{day}/map")
async def get_day_map(day: int, store: ItineraryStore = Depends(get_store)):
    return MapView().update(store.items_for_day(day)).to_dict()


@app.get("/itinerary/days/{day}/map.html", response_class=HTMLResponse)
async def get_day_map_html(day: int, store: ItineraryStore = Depends(get_store)):
    """Standalone pydeck page for the day's markers."""
    deck = MapView().update(store.items_for_day(day)).to_deck()
    return HTMLResponse(deck.to_html(as_string=True))


@app.post("/itinerary/days/{day}/reorder", response_model=DayResponse)
async def reorder_day(day: int, body: ReorderRequest, store: ItineraryStore = Depends(get_store)):
    try:
        items = store.reorder(day, body.from_index, body.to_index)
    except ItineraryError as e:
        raise _to_http_error(e)

    logger.info(f"Itinerary updated: day {day} moved {body.from_index} -> {body.to_index}")
    return DayResponse(day=day, items=[_timeline_entry(item) for item in items])


@app.post("/itinerary/items/{item_id}/toggle-lock")
async def toggle_lock(item_id: str, store: ItineraryStore = Depends(get_store)):
    item = store.toggle_lock(item_id)
    return {
        "toggled": item is not None,
        "item": _timeline_entry(item) if item else None,
    }


@app.post("/itinerary/items", status_code=201)
async def add_item(body: AddItemRequest, store: ItineraryStore = Depends(get_store)):
    try:
        item = store.add_item(**body.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ItineraryError as e:
        raise _to_http_error(e)
    return _timeline_entry(item)


@app.post("/itinerary/share")
async def share_itinerary():
    url = f"{settings.public_base_url.rstrip('/')}/shared-itinerary/{int(time.time() * 1000)}"
    logger.info(f"Share link generated: {url}")
    return {"url": url}


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        service="mauritius-trip-planner-api",
        timestamp=datetime.now().isoformat(),
    )


# =============================================================================
# Run with: uvicorn app:app --reload --port 8000
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
