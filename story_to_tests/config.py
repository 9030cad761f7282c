"""
Environment configuration and constants.
"""
from typing import List, Optional
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables from .env file at module import time
load_dotenv()


DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    api_title: str = "User Story to Tests"
    api_version: str = "1.0.0"

    # OpenAI Configuration
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.3

    # Jira Configuration
    jira_ac_field_key: Optional[str] = None  # e.g. "customfield_12345"
    jira_api_timeout: int = 15

    # Session / CORS
    session_secret_key: str = "dev-only-change-me"
    session_cookie_name: str = "story_to_tests_session"
    session_max_age: int = 14 * 24 * 60 * 60  # seconds, cookie and stored credentials
    cors_allowed_origins: str = ""

    # Application Configuration
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Ignore extra environment variables that aren't defined in the model

    def allowed_origins(self) -> List[str]:
        """Local development origins plus any comma-separated CORS_ALLOWED_ORIGINS."""
        origins = list(DEFAULT_ALLOWED_ORIGINS)
        for origin in self.cors_allowed_origins.split(","):
            origin = origin.strip()
            if origin and origin not in origins:
                origins.append(origin)
        return origins


# Global settings instance
settings = Settings()
