from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env file explicitly to ensure it works even if not in CWD
load_dotenv()

class Settings(BaseSettings):
    discord_token: str
    mongo_uri: str
    db_name: str = "RP_ECONOMY"
    owner_id: int

    # Transactional store
    store_backend: Literal["mongo", "memory"] = "mongo"
    transaction_retries: int = Field(default=3, ge=1, description="Attempts per callable on write conflict")
    retry_backoff: float = Field(default=0.05, ge=0, description="Base delay in seconds between attempts")

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/economy.log"

    class Config:
        env_file = ".env"
        case_sensitive = False

# Global settings instance
try:
    settings = Settings()
except Exception as e:
    print(f"Error loading settings: {e}")
    raise
