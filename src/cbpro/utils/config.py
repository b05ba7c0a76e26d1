"""Configuration management."""

import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Configuration for the Coinbase Pro client."""

    # Environment: ['live', 'sandbox']
    ENVIRONMENT: str = os.getenv("CBPRO_ENVIRONMENT", "sandbox")

    # API credentials
    API_KEY: str = os.getenv("CBPRO_API_KEY", "")
    API_SECRET: str = os.getenv("CBPRO_API_SECRET", "")
    API_PASSPHRASE: str = os.getenv("CBPRO_API_PASSPHRASE", "")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # WebSocket URLs
    WS_PRODUCTION_URL = "wss://ws-feed.exchange.coinbase.com"
    WS_SANDBOX_URL = "wss://ws-feed-public.sandbox.exchange.coinbase.com"

    # REST API URLs
    REST_PRODUCTION_URL = "https://api.exchange.coinbase.com"
    REST_SANDBOX_URL = "https://api-public.sandbox.exchange.coinbase.com"

    # Connection settings
    REST_TIMEOUT = 10  # seconds
    RATE_LIMIT_PER_SECOND = 10.0
    PAGE_LENGTH = 1000  # max items per paginated response
    USER_AGENT = "cbpro/0.1.0"

    @classmethod
    def get_ws_url(cls) -> str:
        """Get WebSocket URL based on environment."""
        return cls.WS_SANDBOX_URL if cls.is_sandbox() else cls.WS_PRODUCTION_URL

    @classmethod
    def get_rest_url(cls) -> str:
        """Get REST API URL based on environment."""
        return cls.REST_SANDBOX_URL if cls.is_sandbox() else cls.REST_PRODUCTION_URL

    @classmethod
    def is_sandbox(cls) -> bool:
        """Check if running against the sandbox exchange."""
        return cls.ENVIRONMENT == "sandbox"

    @classmethod
    def validate(cls) -> bool:
        """Validate configuration."""
        if not cls.API_KEY or not cls.API_SECRET or not cls.API_PASSPHRASE:
            return False
        return True
