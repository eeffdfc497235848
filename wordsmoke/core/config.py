"""
Client configuration module
"""

from typing import Optional
from pydantic_settings import BaseSettings

from wordsmoke import __version__

class Settings(BaseSettings):
    """Client settings"""

    # Basics
    APP_NAME: str = "Wordsmoke"
    VERSION: str = __version__
    CLIENT_BUILD: Optional[str] = None
    DEBUG: bool = False

    # API
    API_BASE_URL: str = "http://localhost:3000/api"
    API_VERSION: str = "1"
    API_TIMEOUT: int = 30

    # Change notifications
    CABLE_PATH: str = "/cable"
    POLL_INTERVAL: float = 5.0

    # Game rules enforced client side
    MIN_PLAYERS_TO_START: int = 2

    # User reports
    SUPPORT_URL: str = "https://api.web3forms.com/submit"
    SUPPORT_ACCESS_KEY: str = ""

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_BODY_MAX_LENGTH: int = 600

    class Config:
        env_file = ".env"
        env_prefix = "WORDSMOKE_"
        case_sensitive = True

# Process-wide default settings
settings = Settings()
