from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    llm_api_key: str = ""
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_model: str = "openai/gpt-4o-mini"
    llm_temperature: float = 0.3

    telegram_bot_token: str = ""
    db_path: str = "chat_ledger.json"

    whatsapp_verify_token: str = ""
    whatsapp_access_token: str = ""
    whatsapp_base_api_url: str = "https://graph.facebook.com"
    whatsapp_api_version: str = "21.0"
    whatsapp_template_language: str = "en_US"
    whatsapp_approved_templates: list[str] = [
        "hello_world",
        "sample_shipping_confirmation",
        "sample_issue_resolution",
    ]

    chart_base_url: str = "https://quickchart.io/chart"
    # Python weekday numbering: 0 = Monday ... 6 = Sunday
    first_weekday: int = 6
    latest_default_limit: int = 5
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
