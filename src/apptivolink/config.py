"""Configuration and environment handling for apptivolink."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class SessionConfig:
    """User credentials for session-only endpoints (bulk data retrieval)."""

    def __init__(self):
        self.email: Optional[str] = os.getenv("APPTIVO_SESSION_EMAIL")
        self.password: Optional[str] = os.getenv("APPTIVO_SESSION_PASSWORD")
        self.firm_id: Optional[str] = os.getenv("APPTIVO_FIRM_ID")

    @property
    def is_configured(self) -> bool:
        return bool(self.email and self.password and self.firm_id)


class Config:
    """Central configuration object."""

    def __init__(self):
        # Load .env file if it exists
        env_path = Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        # Business credentials
        self.api_key: str = os.getenv("APPTIVO_API_KEY", "")
        self.access_key: str = os.getenv("APPTIVO_ACCESS_KEY", "")
        self.user_email: str = os.getenv("APPTIVO_USER_EMAIL", "")

        # Transport
        self.connector: str = os.getenv("APPTIVO_CONNECTOR", "apptivo")
        self.base_url: str = os.getenv("APPTIVO_BASE_URL", "https://api2.apptivo.com")
        self.max_retries: int = int(os.getenv("APPTIVO_MAX_RETRIES", "3"))
        self.retry_delay: float = float(os.getenv("APPTIVO_RETRY_DELAY", "1.0"))
        self.request_interval: float = float(os.getenv("APPTIVO_REQUEST_INTERVAL", "0"))
        self.timeout_s: float = float(os.getenv("APPTIVO_TIMEOUT_S", "30"))

        # Logging
        self.log_level: str = os.getenv("APPTIVO_LOG_LEVEL", "INFO")

        # Session login
        self.session = SessionConfig()

    @property
    def has_api_keys(self) -> bool:
        return bool(self.api_key and self.access_key)


# Global config instance
config = Config()
