from pydantic import BaseModel
import os


class Settings(BaseModel):
    env: str = os.getenv("ENV", "dev")

    # Hosted completion model
    google_api_key: str = os.getenv("GOOGLE_API_KEY", "")
    assistant_model: str = os.getenv("ASSISTANT_MODEL", "gemini-2.5-flash")
    assistant_temperature: float = float(os.getenv("ASSISTANT_TEMPERATURE", "0.7"))
    assistant_max_tokens: int = int(os.getenv("ASSISTANT_MAX_TOKENS", "1000"))

    # Backend-as-a-service (persistence + auth)
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_anon_key: str = os.getenv("SUPABASE_ANON_KEY", "")
    activities_limit: int = int(os.getenv("ACTIVITIES_LIMIT", "50"))
    activities_in_prompt: int = int(os.getenv("ACTIVITIES_IN_PROMPT", "10"))

    # Client side
    api_base_url: str = os.getenv("API_BASE_URL", "http://localhost:8000")
    assistant_url: str = os.getenv("ASSISTANT_URL", "http://localhost:8000/travel-assistant")
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8080")

    log_file: str = os.getenv("LOG_FILE", "mauritius_planner.log")


settings = Settings()
