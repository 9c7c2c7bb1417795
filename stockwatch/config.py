"""Application configuration via Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Watch list / rate-limit state file
    CONFIG_PATH: str = "./config.json"

    # App
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # HTTP client
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:82.0) Gecko/20100101 Firefox/82.0"
    )

    # Cool-down applied to a retailer key after a throttling response
    RATE_LIMIT_COOLDOWN_SECONDS: int = 120

    # Test targets are only checked when the wall-clock minute is a multiple of this
    TEST_TARGET_INTERVAL_MINUTES: int = 10

    # Daemon mode
    DEFAULT_DAEMON_TIMEOUT: int = 60

    # Where bodies of failing test targets are written for inspection
    RESPONSE_DUMP_DIR: str = "./logs"


settings = Settings()
