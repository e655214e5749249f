from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    supabase_url: str
    database_url: str
    direct_database_url: str = ""
    llm_api_key: str = Field(validation_alias=AliasChoices('llm_api_key', 'openai_api_key', 'google_api_key'))
    llm_model_name: str = Field(default="gpt-4.1-mini", validation_alias=AliasChoices('llm_model_name', 'openai_model_name'))
    llm_timeout_seconds: float = 60.0
    cors_origins: str = "http://localhost:3000"
    log_level: str = "INFO"


settings = Settings()
