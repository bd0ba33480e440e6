import os


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    # Defaults to a local SQLite file; point at Postgres in docker-compose
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dashboard.db")

    REDIS_ENABLED = _env_flag("REDIS_ENABLED", "1")
    REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
    CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", 600))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    ROOT_PATH = os.getenv("ROOT_PATH", "")

    SEED_SAMPLE_DATA = _env_flag("SEED_SAMPLE_DATA", "1")
    # Stand-in for the logged-in nurse until real auth exists
    CURRENT_USERNAME = os.getenv("CURRENT_USERNAME", "sarah.chen")

    CHAT_REPLY_POLICY = os.getenv("CHAT_REPLY_POLICY", "dashboard")
    CHAT_REPLY_OFFSET_SECONDS = float(os.getenv("CHAT_REPLY_OFFSET_SECONDS", 1))
