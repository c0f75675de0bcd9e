"""
LangGraph Definition for the Mauritius Travel Assistant

Graph Structure:
- Entry: load_activities (reads the activities catalog for prompt context)
- compose_prompt (serializes itinerary / trip data / selected day into prompts)
- call_llm (forwards the prompts to the hosted completion model)

The graph is stateless across requests: every call to the assistant endpoint
builds a fresh AssistantState. Persisting the exchange is not part of the
graph; the API schedules it as a background task after responding.
"""

from typing import Any, Dict, List, Optional

from langgraph.graph import StateGraph, END
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.messages import HumanMessage, SystemMessage

from stategraph import AssistantRequest, AssistantState
from supabase_client import SupabaseClient
from settings import settings
from logger_config import setup_logger

logger = setup_logger(__name__)


APOLOGY_RESPONSE = (
    "I'm having trouble processing your request right now. Please try asking "
    "something simpler, like 'What should I do today?' or 'Suggest nearby restaurants'."
)


class AssistantConfigError(RuntimeError):
    """The hosted completion model cannot be reached because it is not configured."""


# =============================================================================
# Configuration
# =============================================================================

# Lazy LLM initialization - only create when needed
_llm = None
_supabase = None


def get_llm():
    """Get or create LLM instance. Raises AssistantConfigError if the API key is not set."""
    global _llm
    if _llm is None:
        if not settings.google_api_key:
            raise AssistantConfigError("Google API key not configured")
        _llm = ChatGoogleGenerativeAI(
            model=settings.assistant_model,
            google_api_key=settings.google_api_key,
            temperature=settings.assistant_temperature,
            max_output_tokens=settings.assistant_max_tokens,
        )
    return _llm


def get_supabase() -> SupabaseClient:
    global _supabase
    if _supabase is None:
        _supabase = SupabaseClient()
    return _supabase


# =============================================================================
# Prompt Templates
# =============================================================================

def _format_trip(trip_data: Optional[Dict[str, Any]]) -> str:
    if not trip_data:
        return "Not available"
    return (
        f"Budget: {trip_data.get('budget')}, "
        f"Style: {trip_data.get('travel_style')}, "
        f"Group: {trip_data.get('group_size')} people"
    )


def _format_itinerary(itinerary: Optional[List[Dict[str, Any]]]) -> str:
    if not itinerary:
        return "No itinerary provided"
    return "\n".join(
        f"Day {item.get('day')}: {item.get('title')} at {item.get('time')} ({item.get('location')})"
        for item in itinerary
    )


def _format_activities(activities: Optional[List[Dict[str, Any]]]) -> str:
    if not activities:
        return "Activities database not available"
    lines = []
    for activity in activities[: settings.activities_in_prompt]:
        cost = activity.get("cost_estimate_usd")
        price = f"${cost}" if cost else "Price varies"
        lines.append(
            f"- {activity.get('title')} ({activity.get('category')}, {activity.get('location')}) - {price}"
        )
    return "\n".join(lines)


def build_system_prompt(state: AssistantState) -> str:
    itinerary = state.get("itinerary")
    selected_day = state.get("selected_day")

    return f"""You are an expert AI travel assistant specializing in Mauritius. You help travelers optimize their itineraries, suggest activities, and provide personalized recommendations.

CURRENT CONTEXT:
- User's Trip: {_format_trip(state.get("trip_data"))}
- Current Day Focus: Day {selected_day or 'Not specified'}
- Itinerary Items: {len(itinerary) if itinerary else 0} planned activities
- User Location: {'Available' if state.get("user_location") else 'Not available'}

CURRENT ITINERARY OVERVIEW:
{_format_itinerary(itinerary)}

AVAILABLE MAURITIUS ACTIVITIES DATABASE:
{_format_activities(state.get("activities"))}

INSTRUCTIONS:
- Provide specific, actionable travel advice for Mauritius
- Reference the user's current itinerary when relevant
- Suggest specific activities from the database when appropriate
- Consider budget, travel style, and group size
- Be concise but helpful
- If suggesting restaurants/activities, mention specific locations and rough costs
- Help optimize travel routes and timing"""


def build_user_prompt(state: AssistantState) -> str:
    selected_day = state.get("selected_day")
    focus = f"planning Day {selected_day}" if selected_day else "reviewing my itinerary"
    return f"""{state.get("message", "")}

Context: I'm currently {focus} of my Mauritius trip."""


def _message_text(result: Any) -> str:
    """Plain text of a chat model result (string content or content blocks)."""
    content = getattr(result, "content", result)
    if isinstance(content, list):
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return content or ""


# =============================================================================
# Nodes
# =============================================================================

def load_activities_node(state: AssistantState) -> Dict[str, Any]:
    """Fetch catalog rows for the prompt. A failure only degrades the context."""
    errors = list(state.get("errors", []))
    client = get_supabase()

    if not client.configured:
        logger.debug("Activities database not configured")
        return {"activities": None, "errors": errors}

    try:
        activities = client.fetch_activities(limit=settings.activities_limit)
        logger.debug(f"Loaded {len(activities)} activities")
    except Exception as e:
        logger.error(f"Error fetching activities: {str(e)}", exc_info=True)
        errors.append(f"Activities fetch error: {str(e)}")
        activities = None

    return {"activities": activities, "errors": errors}


def compose_prompt_node(state: AssistantState) -> Dict[str, Any]:
    return {
        "system_prompt": build_system_prompt(state),
        "user_prompt": build_user_prompt(state),
    }


def call_llm_node(state: AssistantState) -> Dict[str, Any]:
    """
    Forward the prompts to the completion model.

    Configuration and model errors propagate to the caller; the API turns
    them into the apology envelope.
    """
    messages = [
        SystemMessage(content=state["system_prompt"]),
        HumanMessage(content=state["user_prompt"]),
    ]

    logger.info("Calling completion model...")
    result = get_llm().invoke(messages)
    logger.info("Completion model response success")

    return {"assistant_response": _message_text(result)}


# =============================================================================
# Graph Construction
# =============================================================================

def create_assistant_graph():
    """
    Create and compile the travel assistant graph.

    Structure:
    - Entry: load_activities
    - load_activities -> compose_prompt -> call_llm -> END
    """
    graph = StateGraph(AssistantState)

    graph.add_node("load_activities", load_activities_node)
    graph.add_node("compose_prompt", compose_prompt_node)
    graph.add_node("call_llm", call_llm_node)

    graph.set_entry_point("load_activities")
    graph.add_edge("load_activities", "compose_prompt")
    graph.add_edge("compose_prompt", "call_llm")
    graph.add_edge("call_llm", END)

    return graph.compile()


# Global graph instance
_graph = None


def get_graph():
    """Get or create the graph singleton."""
    global _graph
    if _graph is None:
        _graph = create_assistant_graph()
    return _graph


def run_assistant(request: AssistantRequest) -> str:
    """Answer one assistant request. Raises on configuration or model failure."""
    itinerary = list(request.itinerary) if request.itinerary else None
    trip_data = request.trip_data.model_dump() if request.trip_data else None

    logger.info(
        "Travel Assistant Request: "
        f"message={request.message!r}, "
        f"itineraryCount={len(itinerary) if itinerary else 0}, "
        f"tripData={'Present' if trip_data else 'Missing'}, "
        f"selectedDay={request.selected_day}, "
        f"userLocation={'Present' if request.user_location else 'Missing'}"
    )

    state: AssistantState = {
        "message": request.message,
        "itinerary": itinerary,
        "trip_data": trip_data,
        "selected_day": request.selected_day,
        "user_location": request.user_location,
        "errors": [],
    }

    result = get_graph().invoke(state)

    if result.get("errors"):
        logger.debug(f"Assistant context errors: {result['errors']}")

    return result.get("assistant_response", "")
