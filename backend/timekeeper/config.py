from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./timekeeper.db"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # per-user timer mutex
    TIMER_LOCK_TIMEOUT_SECONDS: float = 2.0
    TIMER_LOCK_RETRIES: int = 3

    LONG_RUNNING_TIMER_HOURS: float = 10
    DEFAULT_UTC_OFFSET_MINUTES: int = 0
    LIVE_TIMER_TICK_SECONDS: int = 60
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
