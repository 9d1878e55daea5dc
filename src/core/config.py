"""Application settings, read from the environment (prefix CHESS_) or a local .env file."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHESS_", env_file=".env", extra="ignore"
    )

    database_url: str = "sqlite:///./chess.db"
    echo_sql: bool = False
    log_level: str = "INFO"
    # Store key under which the id of the game shown on the display is kept
    current_game_key: str = "current_game"


settings = Settings()
