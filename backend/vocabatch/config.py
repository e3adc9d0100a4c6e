from pathlib import Path
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = f"sqlite:///{BASE_DIR / 'vocabatch.db'}"
    sqlite_busy_timeout_ms: int = 5000
    gemini_key: str = ""
    openai_key: str = ""
    anthropic_api_key: str = ""
    log_dir: Path = BASE_DIR / "data" / "logs"

    # Batch shape
    words_per_batch: int = 50
    words_per_level: int = 1000

    # Provider budget
    generation_batch_size: int = 100
    min_generation_request: int = 25
    free_tier_limit: int = 1500
    min_quota_remaining: int = 2
    quota_window_hours: int = 24
    provider_timeout: int = 60

    # Vocabulary-size policy gates. The two thresholds are independent on purpose.
    large_vocabulary_threshold: int = 200
    advanced_dedup_threshold: int = 150
    exclusion_list_limit: int = 200

    # Retry policy
    max_generation_retries: int = 3
    backfill_retries: int = 3
    retry_base_delay: float = 1.0
    retry_multiplier: float = 2.0
    retry_max_delay: float = 8.0

    model_config = {"env_file": [BASE_DIR / ".env", BASE_DIR.parent / ".env"], "extra": "ignore"}


settings = Settings()
