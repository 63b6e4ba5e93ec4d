from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # AI backend (used when no JSON config is passed on the command line)
    ai_provider: str = "openai"
    ai_api_key: str = ""
    ai_base_url: str = ""
    ai_model: str = ""
    ai_timeout: int | None = None  # per-attempt timeout, ms
    ai_max_retries: int | None = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in CI for structured JSON logs


settings = Settings()
