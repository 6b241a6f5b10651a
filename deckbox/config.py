from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DECKBOX_")

    app_name: str = "DeckBox"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./deckbox.db"

    scryfall_base_url: str = "https://api.scryfall.com"
    user_agent: str = "DeckBox/1.0"
    request_timeout: float = 30.0

    # Scryfall asks clients to keep 50-100ms between requests
    min_request_interval: float = 0.1
    max_rate_limit_retries: int = 3


settings = Settings()
