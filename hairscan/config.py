# hairscan/config.py
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gemini_api_key: str = ""
    gemini_model:   str = "gemini-2.5-flash"

    doctors_csv: Path = Path("data/zocdoc.csv")

    analysis_timeout_seconds:     float = Field(30.0, gt=0)
    analysis_max_retries:         int   = Field(1, ge=0, le=1)
    analysis_retry_delay_seconds: float = Field(1.0, ge=0)
    max_image_bytes:              int   = Field(15 * 1024 * 1024, gt=0)

    cors_origins: List[str] = [
        "https://hair-analyzer-mern.vercel.app",
        "http://localhost:5173",
    ]

    host:      str = "0.0.0.0"
    port:      int = 5000
    log_level: str = "INFO"

settings = Settings()
