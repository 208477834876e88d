from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from pathlib import Path
from typing import List, Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # System
    LOG_LEVEL: str = "INFO"
    DATA_DIR: Path = Path("./data")
    DATABASE_PATH: Optional[Path] = None  # defaults to DATA_DIR/clips.db
    THUMBNAILS_DIR: Optional[Path] = None  # defaults to DATA_DIR/thumbnails
    HTTP_TIMEOUT: float = 20.0

    # LLM
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.1"

    # Classification
    RELEVANCE_THRESHOLD: int = 7
    NEWS_TRANSCRIPT_LIMIT: int = 15000
    MEETING_TRANSCRIPT_LIMIT: int = 50000
    DESCRIPTION_LIMIT: int = 3000

    # Sources
    SOURCE_GOOGLE_NEWS_ENABLED: bool = True
    SOURCE_YOUTUBE_ENABLED: bool = True
    SOURCE_BLUESKY_ENABLED: bool = True
    YOUTUBE_API_KEY: str | None = None
    YOUTUBE_LOOKBACK_HOURS: int = 6
    YOUTUBE_MAX_PAGES: int = 3

    # Enrichment
    GEOCODIO_API_KEY: str | None = None

    # Schedule
    POLL_INTERVAL_MINUTES: int | None = None  # unset = run at SCHEDULE_HOURS
    SCHEDULE_HOURS: List[int] = Field(default_factory=lambda: [0, 6, 12, 18])
    SCHEDULE_TIMEZONE: str = "America/New_York"
    CHECK_INTERVAL_SECONDS: int = 300
    HEALTH_PORT: int = 3000

    # Telegram
    TELEGRAM_ENABLED: bool = False
    TELEGRAM_BOT_TOKEN: str | None = None
    TELEGRAM_CHAT_ID: str | None = None
    NOTIFY_MIN_IMPORTANCE: str = "high"

    @field_validator("SCHEDULE_HOURS")
    @classmethod
    def hours_in_day(cls, v: List[int]) -> List[int]:
        bad = [h for h in v if not 0 <= h <= 23]
        if bad:
            raise ValueError(f"SCHEDULE_HOURS must be between 0 and 23, got {bad}")
        return v

    @property
    def database_path(self) -> Path:
        return self.DATABASE_PATH or self.DATA_DIR / "clips.db"

    @property
    def thumbnails_dir(self) -> Path:
        return self.THUMBNAILS_DIR or self.DATA_DIR / "thumbnails"

    def ensure_dirs(self):
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self.thumbnails_dir.mkdir(parents=True, exist_ok=True)

settings = Settings()
