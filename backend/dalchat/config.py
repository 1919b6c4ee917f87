from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dalchat.db"
    # Create tables at startup (alembic remains the path for Postgres upgrades)
    AUTO_CREATE_TABLES: bool = True

    # Session tokens are opaque; 0 disables expiry entirely.
    SESSION_TTL_MINUTES: int = 60 * 24 * 7

    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Redis cross-instance event relay.
    # Set to empty string to disable Redis (events are then delivered in-process only)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Deployment identity, used in log lines and the health report.
    SERVER_DOMAIN: str = "localhost"

    MESSAGE_MAX_LENGTH: int = 2000

    # Default interval for the poll-diff client feed
    POLL_INTERVAL_SECONDS: float = 2.0

    model_config = {"env_file": ".env"}


settings = Settings()
