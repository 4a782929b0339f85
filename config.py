import os
from functools import lru_cache

DEFAULT_BUDGET_TIMEZONE = "Australia/Sydney"
SUPPORTED_CARRYOVER_MODES = ("none",)


class Settings:
    def __init__(
        self,
        timezone: str,
        log_level: str,
        carryover_mode: str,
    ) -> None:
        self.timezone = timezone
        self.log_level = log_level
        self.carryover_mode = carryover_mode


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    timezone = os.getenv("BUDGET_TIMEZONE", DEFAULT_BUDGET_TIMEZONE)
    log_level = os.getenv("BUDGET_LOG_LEVEL", "INFO").upper()
    carryover_mode = os.getenv("BUDGET_CARRYOVER_MODE", "none").lower()
    if carryover_mode not in SUPPORTED_CARRYOVER_MODES:
        raise ValueError(f"Unsupported carryover mode: {carryover_mode}")
    return Settings(
        timezone=timezone,
        log_level=log_level,
        carryover_mode=carryover_mode,
    )
