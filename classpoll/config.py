"""
Application configuration from environment variables.
Loads .env from the project directory so store and API keys are found regardless of cwd.
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default model for generateContent (v1beta).
_DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

# Models that return 404 or are unsupported. Normalized at config load to _DEFAULT_GEMINI_MODEL.
_UNSUPPORTED_GEMINI_MODELS = frozenset({
    "gemini-1.5-flash-002", "gemini-1.5-flash-001", "gemini-1.5-flash",
    "gemini-1.5-pro", "gemini-1.5-pro-001", "gemini-1.5-pro-002",
    "gemini-2.0-flash", "gemini-2.0-flash-001", "gemini-2.0-flash-lite", "gemini-2.0-flash-lite-001",
})


def _normalize_gen_model(v: str) -> str:
    """Ensure gen_model_name is supported by generateContent (avoids 404 from old .env)."""
    s = (v or _DEFAULT_GEMINI_MODEL).strip()
    if not s:
        return _DEFAULT_GEMINI_MODEL
    if s in _UNSUPPORTED_GEMINI_MODELS or s.startswith("gemini-1.5-") or s.startswith("gemini-2.0-flash"):
        return _DEFAULT_GEMINI_MODEL
    return s


# .env next to the classpoll package; loaded explicitly so keys are set even when run from elsewhere
_PROJECT_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote store: PostgREST / Supabase REST base URL, e.g. https://<ref>.supabase.co/rest/v1
    # Empty URL: in-memory store (local dev only, nothing survives a restart).
    store_url: str = ""
    store_api_key: str = ""
    store_timeout_seconds: float = 10.0

    # Local slot for the last-authenticated viewer
    session_database_url: str = "sqlite:///./classpoll_session.db"
    session_key: str = "classpoll_session"

    # Poll drafting (optional). Without GEMINI_API_KEY drafting yields no proposal.
    gen_model_name: str = _DEFAULT_GEMINI_MODEL
    gemini_api_key: str = ""
    poll_draft_difficulty: str = "High School"

    @field_validator("gen_model_name", mode="before")
    @classmethod
    def _resolve_gen_model(cls, v: str) -> str:
        return _normalize_gen_model(v) if isinstance(v, str) else _DEFAULT_GEMINI_MODEL

    # Seed administrator, synthesized when the users table is empty. Its email is protected from deletion.
    seed_admin_id: str = "admin-init"
    seed_admin_name: str = "Administrateur Principal"
    seed_admin_email: str = "faye@eco.com"
    # Secret given to the seed admin, new accounts without one, and password resets
    default_password: str = "passer25"
    # Store new and reset secrets as bcrypt hashes. Login accepts both forms either way.
    hash_new_credentials: bool = False

    # School settings singleton
    default_school_name: str = "ClassPoll+"
    default_theme_color: str = "indigo"
    settings_row_id: str = "config"

    poll_default_lifetime_days: int = 7

    # CORS: comma-separated origins
    cors_origins: str = "http://localhost:3000"

    debug: bool = False

    @property
    def active_llm_model(self) -> str:
        """Model name for display/logging."""
        return (self.gen_model_name or _DEFAULT_GEMINI_MODEL).strip()


settings = Settings()
