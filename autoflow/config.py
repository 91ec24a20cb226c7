from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="APP_", extra="ignore")

    # Groq
    groq_api_key: str = ""
    groq_model: str = "mixtral-8x7b-32768"
    groq_base_url: str = "https://api.groq.com/openai/v1"

    # ActivePieces
    activepieces_url: str = "http://localhost:3000/api"
    activepieces_api_key: str = ""

    # Local state
    database_url: str = "sqlite:///./db.sqlite3"
    token_store_path: str = ".autoflow/session.json"

    # Background jobs
    approval_poll_interval_s: float = 30.0
    session_check_interval_s: float = 60.0
    default_approval_timeout_ms: int = 3_600_000

    # Inbound webhooks
    webhook_rate_limit: int = 100
    webhook_rate_window_s: float = 60.0


settings = Settings()
