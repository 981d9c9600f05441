# Logging adapter for application-wide logging
from dbretry.adapters.logging_adapter import LoggingAdapter

from pydantic import SecretStr, computed_field
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

from dbretry.core.config import DEFAULT_RETRY_DELAY, DEFAULT_RETRY_LIMIT


# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class DbRetrySettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }
    DBRETRY_LOG_LEVEL: str = "INFO"
    DBRETRY_RETRY_LIMIT: int = DEFAULT_RETRY_LIMIT
    DBRETRY_RETRY_DELAY: float = DEFAULT_RETRY_DELAY  # seconds
    DBRETRY_DATABASE_NAME: str = "postgres"
    DBRETRY_DATABASE_HOST: str = "localhost"
    DBRETRY_DATABASE_PORT: int = 5432
    DBRETRY_DATABASE_USER: str = "postgres"
    DBRETRY_DATABASE_PASSWORD: SecretStr = SecretStr("postgres")

    @computed_field
    @property
    def DBRETRY_DATABASE_URL(self) -> str:
        """Constructs the SQLAlchemy-style URL of the configured database"""
        return URL.create(
            "postgresql+psycopg2",
            username=self.DBRETRY_DATABASE_USER,
            password=self.DBRETRY_DATABASE_PASSWORD.get_secret_value(),
            host=self.DBRETRY_DATABASE_HOST,
            port=self.DBRETRY_DATABASE_PORT,
            database=self.DBRETRY_DATABASE_NAME,
        ).render_as_string(hide_password=False)


app_settings = DbRetrySettings()

logger = LoggingAdapter("dbretry", app_settings.DBRETRY_LOG_LEVEL)
