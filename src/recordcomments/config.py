from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Library configuration loaded from environment variables."""

    debug: bool = False
    # Inbound realtime updates arriving this soon after a local write are treated as echoes of it
    sync_cooldown_seconds: float = 8.0
    version_conflict_backoff_base: float = 0.1  # Seconds, doubled per attempt on STALE_ITEM_VERSION
    version_conflict_backoff_max: float = 5.0
    network_backoff_base: float = 0.5  # Seconds, doubled per attempt on transport failures
    network_backoff_max: float = 10.0
    max_persist_attempts: int = 15
    max_persist_duration_seconds: float = 120.0
    max_load_attempts: int = 4  # Initial conversation fetch
    avatar_size: int = 48  # Gravatar size for user transformers
    project_locales: list[str] = []  # When set, only these codes are treated as locale suffixes

    model_config = {
        "env_file": [".env"],
        "env_prefix": "RECORDCOMMENTS_",
        "extra": "ignore",
    }
