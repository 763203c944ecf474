import os
from typing import List, Literal
from pydantic_settings import BaseSettings

StorageProviderType = Literal["local", "supabase"]

class Settings(BaseSettings):
    PROJECT_NAME: str = "ChannelCast"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Path Configuration
    # config.py is in backend/app/core/ => 3 levels up to backend => 4 levels up to root
    BACKEND_DIR: str = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    PROJECT_ROOT: str = os.path.dirname(BACKEND_DIR)

    DATA_DIR: str = os.getenv("DATA_DIR", os.path.join(PROJECT_ROOT, "data"))

    # Admin credentials (Basic auth on scheduling routes)
    ADMIN_USER: str = os.getenv("ADMIN_USER", "")
    ADMIN_PASS: str = os.getenv("ADMIN_PASS", "")

    # Cloud / Database Keys
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_DB_URL: str = os.getenv("SUPABASE_DB_URL", "") # connection string

    # Storage Configuration
    STORAGE_PROVIDER: StorageProviderType = os.getenv("STORAGE_PROVIDER", "local")
    MEDIA_BUCKET: str = os.getenv("MEDIA_BUCKET", "videos")

    # --- Scheduling ---
    DEFAULT_DURATION_SECONDS: int = int(os.getenv("DEFAULT_DURATION_SECONDS", "3600"))
    # Persist every placement and restore the timeline on startup
    PERSIST_SCHEDULE: bool = os.getenv("PERSIST_SCHEDULE", "true").lower() in ("1", "true", "yes")

    # --- Streaming proxy ---
    STREAM_CHUNK_SIZE: int = int(os.getenv("STREAM_CHUNK_SIZE", str(1024 * 1024)))
    STREAM_TIMEOUT_SECONDS: float = float(os.getenv("STREAM_TIMEOUT_SECONDS", "30"))

    CORS_ORIGINS: List[str] = ["http://localhost:5173"] # Vite/React default

    class Config:
        case_sensitive = True
        env_file = ".env"

    def __init__(self, **data):
        super().__init__(**data)
        self._configure_defaults()

    def _configure_defaults(self):
        """Non-positive default duration falls back to one hour."""
        if self.DEFAULT_DURATION_SECONDS <= 0:
            self.DEFAULT_DURATION_SECONDS = 3600

settings = Settings()
