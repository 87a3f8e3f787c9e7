"""Configuration settings for the application."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Pydantic settings class for the application."""

    # Define the settings with default values and types
    # These will be loaded from environment variables or a .env file if not provided
    API_PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical

    # Model gateway
    GATEWAY: str = "tgi"  # Options: scripted, tgi, openai, anthropic
    TGI_ENDPOINT: str = "http://tgi:8080/generate"
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_API_KEY: str | None = None
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-latest"
    TEMPERATURE: float = 0.2
    MAX_NEW_TOKENS: int = 512
    GATEWAY_TIMEOUT: float = 30.0  # seconds, per model call

    # Agent loop
    TOOL_TIMEOUT: float = 15.0  # seconds, per tool call
    MAX_ITERATIONS: int = 8
    MAX_CONSECUTIVE_PARSE_FAILURES: int | None = None  # None: bounded by MAX_ITERATIONS only

    class Config:
        """Configuration for Pydantic settings."""

        # Load environment variables from a .env file
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
