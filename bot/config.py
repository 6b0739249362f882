"""
Bot configuration — read once from the environment (.env supported).
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from clients.global_api import DEFAULT_BASE_URL, DEFAULT_KZGO_URL


@dataclass(frozen=True)
class BotConfig:
    discord_token: Optional[str]
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "kz_bot"
    global_api_url: str = DEFAULT_BASE_URL
    kzgo_api_url: str = DEFAULT_KZGO_URL
    log_dir: str = "logs"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "BotConfig":
        load_dotenv()
        return cls(
            discord_token=os.getenv("DISCORD_BOT_TOKEN"),
            mongodb_uri=os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
            mongodb_db=os.getenv("MONGODB_DB", "kz_bot"),
            global_api_url=os.getenv("GLOBAL_API_URL", DEFAULT_BASE_URL),
            kzgo_api_url=os.getenv("KZGO_API_URL", DEFAULT_KZGO_URL),
            log_dir=os.getenv("LOG_DIR", "logs"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
