from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = ",".join(
    [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://localhost:5174",
    ]
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    UPSTREAM_API_KEY: str | None = Field(
        default=None, validation_alias=AliasChoices("UPSTREAM_API_KEY", "GROQ_API_KEY")
    )
    UPSTREAM_BASE_URL: str = Field(default="https://api.groq.com/openai/v1")
    UPSTREAM_MODEL: str = Field(default="openai/gpt-oss-20b")
    # None keeps the client library's own timeout
    UPSTREAM_TIMEOUT: float | None = None

    CORS_ORIGINS: str = Field(default=DEFAULT_CORS_ORIGINS)

    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3001)
    MAX_BODY_BYTES: int = Field(default=10 * 1024 * 1024)
    # Seconds uvicorn waits for in-flight requests on SIGTERM; 0 exits without draining
    SHUTDOWN_TIMEOUT: int = Field(default=0)

    APP_NAME: str = Field(default="Tutor Chat Proxy")
    APP_ENV: str = Field(
        default="production", validation_alias=AliasChoices("APP_ENV", "NODE_ENV")
    )
    LOG_LEVEL: str = Field(default="INFO")
    # None: JSON logs outside development, console logs in development
    LOG_JSON: bool | None = None

    @property
    def debug(self) -> bool:
        """Non-production mode: error bodies carry details and the request echo."""
        return self.APP_ENV.lower() == "development"

    @property
    def json_logs(self) -> bool:
        return self.LOG_JSON if self.LOG_JSON is not None else not self.debug

    @property
    def cors_origins(self) -> List[str]:
        origins = [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]
        return ["*"] if "*" in origins else origins
