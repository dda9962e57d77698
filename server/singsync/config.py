from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root (one level above server/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # External tools
    yt_dlp_path: str = "yt-dlp"
    whisper_path: str = "whisper"
    whisper_model: str = "base"

    # Lyrics catalog
    catalog_base_url: str = "https://lrclib.net/api"

    # Timeouts (seconds)
    subtitle_timeout: float = 180
    audio_timeout: float = 240
    transcription_timeout: float = 600
    catalog_timeout: float = 10

    # Storage
    cache_dir: str = "./cache"
    max_process_output_bytes: int = 32 * 1024 * 1024

    # App settings
    cors_origins: str = "http://localhost:3000"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def cache_root(self) -> Path:
        path = Path(self.cache_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def media_dir(self, media_id: str) -> Path:
        path = self.cache_root / media_id
        path.mkdir(parents=True, exist_ok=True)
        return path


settings = Settings()
