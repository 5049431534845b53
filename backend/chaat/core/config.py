from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Chaat"
    debug: bool = False

    # Paths
    db_path: Path = Path(__file__).resolve().parent.parent.parent / "chaat.db"

    # LLM
    gemini_api_key: str = ""
    gemini_model: Literal["gemini-2.5-flash", "gemini-2.5-pro"] = "gemini-2.5-flash"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)

    # Chat
    user_name: str = "User"
    message_separator: str = Field(default="|||", min_length=1)
    auto_reply_interval: int = 60  # seconds between idle checks

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    model_config = {
        "env_file": str(Path(__file__).resolve().parent.parent.parent / ".env"),
        "env_prefix": "CHAAT_",
    }


settings = Settings()
