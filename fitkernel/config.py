import logging

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./fitkernel.db"
    log_level: str = "INFO"

    # Coaching collaborator. Without a usable key every request is answered by the static fallback.
    ai_api_key: str | None = None
    ai_base_url: str = "https://api.openai.com/v1"
    ai_model: str = "gpt-3.5-turbo"
    ai_max_tokens: int = 400
    ai_temperature: float = 0.7
    ai_timeout_seconds: float = 15.0

    # Simulated device effects
    pairing_delay_seconds: float = 2.0  # Per device, devices resolve one after another
    sample_interval_seconds: float = 2.0  # Live heart-rate / steps reading refresh

    # Spoken meal logging: below this confidence the user must confirm before items are logged
    food_confirmation_threshold: float = 0.7

    # Fallbacks when the user profile is missing anthropometrics
    default_timeframe_weeks: int = 12
    default_height_cm: float = 165.0
    default_age: int = 25
    default_weight_kg: float = 70.0

    model_config = {"env_file": ".env", "env_prefix": "FITKERNEL_", "extra": "ignore"}


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the root logger (idempotent)."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
