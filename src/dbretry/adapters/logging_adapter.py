import logging
from dbretry.core.interfaces.logging import LoggingPort


class LoggingAdapter(LoggingPort):
    """Concrete logging adapter.

    Delegates to Python's logging. It intentionally does NOT add its own
    handlers so that central `configure_logging` controls sinks. The operation
    id is injected by root handlers via filter; we simply emit.
    """

    def __init__(self, name: str = "dbretry", log_level: int | str = logging.INFO):
        self.logger = logging.getLogger(name)
        # Normalize level string -> numeric
        if isinstance(log_level, str):
            level_key = log_level.upper().strip()
            numeric = logging.getLevelNamesMapping().get(level_key, logging.INFO)
            log_level = numeric
        self.logger.setLevel(log_level)
        # Allow messages to bubble to root handlers (separate sinks)
        self.logger.propagate = True

    def info(self, msg: str, *args):
        self.logger.info(msg, *args)

    def warning(self, msg: str, *args, exc_info=None):
        self.logger.warning(msg, *args, exc_info=exc_info)

    def error(self, msg: str, *args, exc_info=None):
        self.logger.error(msg, *args, exc_info=exc_info)

    def debug(self, msg: str, *args, exc_info=None):
        self.logger.debug(msg, *args, exc_info=exc_info)
