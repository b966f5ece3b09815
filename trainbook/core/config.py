from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "TrainBook"

    # SQLite file for local use; point at Postgres in any shared environment.
    DATABASE_URL: str = "sqlite:///./trainbook.db"
    SQL_ECHO: bool = False

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Hosted Postgres gives postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v

    LOG_LEVEL: str = "INFO"

    # Audit rows older than this are removed by `trainbook cleanup-audit`
    AUDIT_RETENTION_DAYS: int = 90


settings = Settings()
