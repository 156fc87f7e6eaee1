from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_USER_AGENT = "VanCal/1.0 (Vancouver Community Events Bot; contact@vancal.dev)"


class Settings(BaseSettings):
    scraper_user_agent: str = DEFAULT_USER_AGENT
    scraper_delay_ms: int = 1500
    scraper_max_retries: int = 3
    scraper_timeout_ms: int = 30000
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///data/vancal.db"
    scrape_schedule: str = "06:00"
    api_key: str = ""

    @field_validator("scraper_user_agent", mode="before")
    @classmethod
    def default_empty_user_agent(cls, v: str) -> str:
        if not v or not str(v).strip():
            return DEFAULT_USER_AGENT
        return v

    @field_validator("scraper_max_retries", mode="after")
    @classmethod
    def at_least_one_attempt(cls, v: int) -> int:
        return v if v >= 1 else 1

    @field_validator("scraper_delay_ms", "scraper_timeout_ms", mode="after")
    @classmethod
    def non_negative(cls, v: int) -> int:
        return max(v, 0)

    model_config = {"env_prefix": "", "case_sensitive": False}


settings = Settings()
