"""
Chat session for the travel assistant (client side).

A turn is a two-phase commit keyed by the placeholder's id:
1. begin_turn appends the user message and a pending "thinking" AI message
2. resolve_turn replaces that exact pending message with the answer

Turns that overlap resolve independently, whatever order their answers
arrive in.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Set

import requests
from pydantic import BaseModel, Field

from local_storage import LocalStorage, read_context
from logger_config import setup_logger
from settings import settings

logger = setup_logger(__name__)


GREETING = (
    "Hi! I'm your AI travel assistant for Mauritius. I can help you optimize your "
    "itinerary, suggest alternatives, or answer questions about your trip. "
    "What would you like to know?"
)
THINKING_TEXT = "Let me analyze your itinerary and find the best recommendations..."
FALLBACK_RESPONSE = "I couldn't process your request right now. Please try again."
CONNECTION_APOLOGY = (
    "I'm having trouble connecting right now. Please try asking something like "
    "'What should I do today?' or 'Suggest nearby restaurants'."
)

QUICK_SUGGESTIONS = [
    "Suggest nearby restaurants",
    "Find cheaper alternatives",
    "Add beach activities",
    "Optimize travel time",
    "Weather recommendations",
]


class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    text: str
    sender: Literal["user", "ai"]
    timestamp: datetime = Field(default_factory=datetime.now)


class AssistantClient:
    """HTTP transport to the travel-assistant endpoint."""

    def __init__(self, url: Optional[str] = None, access_token: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.url = url or settings.assistant_url
        self.access_token = access_token
        self.timeout = timeout

    def invoke(self, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        response = requests.post(self.url, json=body, headers=headers, timeout=self.timeout)
        response.raise_for_status()
        return response.json()


class ChatSession:
    def __init__(self, client: Optional[AssistantClient] = None,
                 storage: Optional[LocalStorage] = None):
        self.client = client or AssistantClient()
        self.storage = storage or LocalStorage()
        self.messages: List[ChatMessage] = [ChatMessage(id="1", text=GREETING, sender="ai")]
        self.pending: Set[str] = set()

    # ------------------------------------------------------------------
    # Two-phase turn
    # ------------------------------------------------------------------

    def begin_turn(self, text: str) -> ChatMessage:
        """Append the user message and a pending placeholder; return the placeholder."""
        self.messages.append(ChatMessage(text=text, sender="user"))
        placeholder = ChatMessage(text=THINKING_TEXT, sender="ai")
        self.messages.append(placeholder)
        self.pending.add(placeholder.id)
        return placeholder

    def resolve_turn(self, placeholder_id: str, text: str) -> Optional[ChatMessage]:
        """Replace the pending placeholder with the final AI message."""
        if placeholder_id not in self.pending:
            logger.warning(f"No pending placeholder {placeholder_id}; answer dropped")
            return None

        answer = ChatMessage(text=text, sender="ai")
        self.messages = [answer if msg.id == placeholder_id else msg for msg in self.messages]
        self.pending.discard(placeholder_id)
        return answer

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def sync_context(self, base_url: Optional[str] = None, day: Optional[int] = None,
                     trip_data: Optional[Dict[str, Any]] = None) -> int:
        """
        Pull the planner's itinerary into storage and focus a day.

        Without `day` the stored focus is kept if that day still exists,
        otherwise the first day is focused. `trip_data` replaces the stored
        trip profile when given. Returns the focused day.
        """
        if trip_data is not None:
            self.storage.save_trip_data(trip_data)

        base_url = (base_url or settings.api_base_url).rstrip("/")

        response = requests.get(f"{base_url}/itinerary", timeout=getattr(self.client, "timeout", None))
        response.raise_for_status()
        items = response.json()
        self.storage.save_itinerary(items)

        days = sorted({item["day"] for item in items})
        if day is None:
            current = read_context(self.storage)["selectedDay"]
            day = current if current in days else (days[0] if days else 1)
        self.storage.save_selected_day(day)

        logger.info(f"Synced {len(items)} itinerary items, focus on day {day}")
        return day

    # ------------------------------------------------------------------
    # Assistant call
    # ------------------------------------------------------------------

    def build_request(self, text: str) -> Dict[str, Any]:
        body = {"message": text}
        body.update(read_context(self.storage))
        body["userLocation"] = None
        return body

    def request_answer(self, text: str) -> str:
        """Text for the AI message answering `text`. Never raises."""
        try:
            data = self.client.invoke(self.build_request(text))
            return data.get("response") or FALLBACK_RESPONSE
        except Exception as e:
            logger.error(f"AI Assistant Error: {str(e)}", exc_info=True)
            return CONNECTION_APOLOGY

    def ask(self, text: str) -> Optional[ChatMessage]:
        """Run one turn. Blank input is ignored and returns None."""
        if not text.strip():
            return None
        placeholder = self.begin_turn(text)
        return self.resolve_turn(placeholder.id, self.request_answer(text))

    async def ask_async(self, text: str) -> Optional[ChatMessage]:
        """Like ask, but the placeholder is visible while the call is in flight."""
        if not text.strip():
            return None
        placeholder = self.begin_turn(text)
        answer = await asyncio.to_thread(self.request_answer, text)
        return self.resolve_turn(placeholder.id, answer)

    def ask_suggestion(self, index: int) -> Optional[ChatMessage]:
        return self.ask(QUICK_SUGGESTIONS[index])


# =============================================================================
# CLI Mode
# =============================================================================

if __name__ == "__main__":
    print("=" * 60)
    print("Mauritius Travel Assistant - Chat")
    print("=" * 60)
    print("Type 'quit' to exit, 'day N' to focus a day, 'trip <budget> <style> <group>' to set the trip")
    print("or a number 1-5 for a quick suggestion")
    for i, suggestion in enumerate(QUICK_SUGGESTIONS, start=1):
        print(f"  {i}. {suggestion}")
    print("-" * 60)

    session = ChatSession(storage=LocalStorage("client_storage.json"))
    try:
        print(f"\n[Itinerary synced, day {session.sync_context()}]")
    except requests.RequestException as e:
        print(f"\n[Itinerary not synced: {e}]")
    print(f"\nAssistant: {session.messages[0].text}")

    while True:
        try:
            user_input = input("\nYou: ").strip()

            if not user_input:
                continue
            if user_input.lower() == "quit":
                print("\nGoodbye!")
                break
            if user_input.lower().startswith("day ") and user_input[4:].strip().isdigit():
                try:
                    day = session.sync_context(day=int(user_input[4:].strip()))
                    print(f"\n[Itinerary synced, day {day}]")
                except requests.RequestException as e:
                    print(f"\n[Itinerary not synced: {e}]")
                continue
            if user_input.lower().startswith("trip "):
                # trip <budget> <style> <group size>
                parts = user_input.split()[1:]
                if len(parts) == 3:
                    budget, style, group = parts
                    session.storage.save_trip_data(
                        {"budget": budget, "travelStyle": style, "groupSize": group}
                    )
                    print("\n[Trip profile saved]")
                else:
                    print("\n[Usage: trip <budget> <style> <group size>]")
                continue

            if user_input.isdigit() and 1 <= int(user_input) <= len(QUICK_SUGGESTIONS):
                reply = session.ask_suggestion(int(user_input) - 1)
            else:
                reply = session.ask(user_input)

            if reply:
                print(f"\nAssistant: {reply.text}")

        except KeyboardInterrupt:
            print("\n\nGoodbye!")
            break
