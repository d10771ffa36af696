from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List

class Settings(BaseSettings):
    # Upstream (DeepSeek chat completions)
    DEEPSEEK_API_URL: str = "https://api.deepseek.com/chat/completions"
    UPSTREAM_TIMEOUT: float = 55.0

    # Generation defaults applied when the caller omits a field
    DEFAULT_MODEL: str = "deepseek-chat"
    DEFAULT_TEMPERATURE: float = 0.3
    DEFAULT_MAX_TOKENS: int = 4000

    # Caller-side helpers: where the proxy lives and how long each call may wait
    PROXY_URL: str = "http://localhost:8000/api/deepseek-proxy"
    QUIZ_TIMEOUT: float = 60.0
    THEORY_TIMEOUT: float = 30.0
    KEY_TEST_TIMEOUT: float = 10.0

    # CORS
    ALLOW_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Optional extra frontend
    FRONTEND_ORIGIN: str | None = None

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
if settings.FRONTEND_ORIGIN and "*" not in settings.ALLOW_ORIGINS:
    settings.ALLOW_ORIGINS.append(settings.FRONTEND_ORIGIN)
