"""
Backend-as-a-service access over its REST interface.

- Activities catalog:   GET  /rest/v1/mauritius_activities
- Identity lookup:      GET  /auth/v1/user (bearer token of the caller)
- Interaction history:  GET/POST /rest/v1/user_preferences (upsert)
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from logger_config import setup_logger
from settings import settings
from stategraph import InteractionRecord

logger = setup_logger(__name__)

REQUEST_TIMEOUT = 15


class SupabaseClient:
    def __init__(self, url: Optional[str] = None, anon_key: Optional[str] = None):
        self.url = (url if url is not None else settings.supabase_url).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.supabase_anon_key

    @property
    def configured(self) -> bool:
        return bool(self.url and self.anon_key)

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token or self.anon_key}",
            "Content-Type": "application/json",
        }

    def fetch_activities(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Rows of the Mauritius activities catalog."""
        response = requests.get(
            f"{self.url}/rest/v1/mauritius_activities",
            params={"select": "*", "limit": limit},
            headers=self._headers(),
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()

    def get_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        """Resolve a bearer token to a user record; None when it is not a user session."""
        response = requests.get(
            f"{self.url}/auth/v1/user",
            headers=self._headers(access_token),
            timeout=REQUEST_TIMEOUT,
        )
        if response.status_code in (401, 403):
            return None
        response.raise_for_status()
        user = response.json()
        return user if user and user.get("id") else None

    def fetch_interactions(self, user_id: str) -> List[InteractionRecord]:
        response = requests.get(
            f"{self.url}/rest/v1/user_preferences",
            params={"select": "ai_interactions", "user_id": f"eq.{user_id}"},
            headers=self._headers(),
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        rows = response.json()
        if not rows:
            return []
        return rows[0].get("ai_interactions") or []

    def upsert_interactions(self, user_id: str, interactions: List[InteractionRecord]) -> None:
        headers = self._headers()
        headers["Prefer"] = "resolution=merge-duplicates"
        response = requests.post(
            f"{self.url}/rest/v1/user_preferences",
            json={
                "user_id": user_id,
                "ai_interactions": interactions,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()


def build_interaction(
    message: str,
    ai_response: str,
    selected_day: Optional[int],
    itinerary_count: int,
) -> InteractionRecord:
    return {
        "id": str(int(time.time() * 1000)),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "user_message": message,
        "ai_response": ai_response,
        "context": {
            "selected_day": selected_day,
            "itinerary_count": itinerary_count,
        },
    }


def persist_interaction(
    authorization: Optional[str],
    message: str,
    ai_response: str,
    selected_day: Optional[int],
    itinerary_count: int,
    client: Optional[SupabaseClient] = None,
) -> bool:
    """
    Append one exchange to the caller's interaction history.

    Runs after the response has been sent. Failures are logged and never
    raised. Returns True when the history was written.
    """
    if not authorization:
        return False

    client = client or SupabaseClient()
    if not client.configured:
        logger.debug("Persistence backend not configured; interaction not saved")
        return False

    try:
        user = client.get_user(authorization.replace("Bearer ", "", 1))
        if not user:
            return False

        interactions = client.fetch_interactions(user["id"])
        interactions = interactions + [
            build_interaction(message, ai_response, selected_day, itinerary_count)
        ]
        client.upsert_interactions(user["id"], interactions)

        logger.info(f"Conversation saved for user {user['id']} ({len(interactions)} interactions)")
        return True

    except Exception as e:
        logger.error(f"Error saving conversation: {str(e)}", exc_info=True)
        return False
