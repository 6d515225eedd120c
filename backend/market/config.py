import math
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite+aiosqlite:///./market.db"
    database_echo: bool = False

    # Security - shared secret expected in the X-API-Key header (empty disables auth)
    api_key: str = ""

    # Strategies
    strategies_file: str = "strategies.toml"

    # Trade signal retry defaults (used when a strategy doesn't set its own)
    trade_signal_max_retries: int = 3
    trade_signal_retry_delay: float = 1.0  # seconds, fractions allowed

    # Dispatcher
    dispatch_workers: int = 4
    dispatch_queue_size: int = 1000  # 0 = unbounded
    dispatch_overflow: str = "reject"  # "reject" or "drop"
    shutdown_timeout: float = 30.0

    # Alpaca
    alpaca_api_base_url: str = "https://paper-api.alpaca.markets"
    alpaca_api_key_id: str = ""
    alpaca_api_secret_key: str = ""
    alpaca_timeout: float = 10.0

    # Logging
    log_level: str = "INFO"

    @field_validator("trade_signal_max_retries")
    @classmethod
    def check_max_retries(cls, v: int) -> int:
        if not 0 <= v <= 255:
            raise ValueError("trade_signal_max_retries must be between 0 and 255")
        return v

    @field_validator("trade_signal_retry_delay", "shutdown_timeout")
    @classmethod
    def check_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError("must be a finite, non-negative number of seconds")
        return v

    @field_validator("dispatch_workers")
    @classmethod
    def check_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("dispatch_workers must be at least 1")
        return v

    @field_validator("dispatch_overflow")
    @classmethod
    def check_overflow(cls, v: str) -> str:
        v = v.lower()
        if v not in ("reject", "drop"):
            raise ValueError("dispatch_overflow must be 'reject' or 'drop'")
        return v

    @field_validator("alpaca_api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Settings read once per process (FastAPI dependency)."""
    return Settings()
