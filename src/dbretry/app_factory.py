from dbretry.adapters.database_psycopg2 import (
    Psycopg2ConnectionFactory,
    Psycopg2DatabaseClient,
)
from dbretry.adapters.logging_adapter import LoggingAdapter
from dbretry.adapters.retry_tenacity import TenacityRetryExecutor
from dbretry.core.config import RetryPolicy
from dbretry.core.logging_config import configure_logging
from dbretry.core.managers.database_retry_manager import DatabaseRetryManager
from dbretry.core.settings import app_settings


# the composition root lives at the outermost layer (not in core)
# Instantiates the concrete adapters and wires them together

def create_database_retry_manager(
    settings=None,
    policy: RetryPolicy | None = None,
    with_logging: bool = True,
) -> DatabaseRetryManager:
    """Build a DatabaseRetryManager backed by psycopg2 and tenacity.

    Args:
        settings: DbRetrySettings instance, defaults to the module-level settings.
        policy: Explicit retry policy; built from settings when omitted.
        with_logging: Configure root logging and attach a failure logger.
    """
    if settings is None:
        settings = app_settings
    policy = policy or RetryPolicy.from_app_settings(settings)

    logger = None
    if with_logging:
        configure_logging(settings.DBRETRY_LOG_LEVEL)
        logger = LoggingAdapter("dbretry.database", settings.DBRETRY_LOG_LEVEL)

    return DatabaseRetryManager(
        client=Psycopg2DatabaseClient(),
        retry_port=TenacityRetryExecutor(policy),
        connection_factory=Psycopg2ConnectionFactory(),
        logger=logger,
    )
