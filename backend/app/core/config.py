from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    APP_NAME: str = "LoL Court"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # OpenAI (optional, the rule-based analyzer is used when unset)
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4"
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    LLM_TIMEOUT: float = 60.0

    # Riot API (optional, for match history lookups)
    RIOT_API_KEY: str = ""
    RIOT_PLATFORM: str = "kr"

    # Reward table snapshot loaded at startup
    REWARD_TABLE_PATH: Path | None = None

    # Uploads
    MAX_VIDEO_BYTES: int = 100 * 1024 * 1024

    class Config:
        env_file = ".env"


settings = Settings()
