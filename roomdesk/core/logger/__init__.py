"""
roomdesk logger: console plus optional rotating JSON file.

Usage:
    from roomdesk.core.logger import configure, LoggerConfig

    configure(LoggerConfig(level="DEBUG", log_dir="/var/log/roomdesk"))
    # or configure() to read LOG_LEVEL, LOG_DIR, ... from env

    logger = logging.getLogger(__name__)
    logger.info("Loaded slots", extra={"resource_id": rid, "date": "2025-11-04"})
"""
from roomdesk.core.logger.config import LoggerConfig
from roomdesk.core.logger.formatters import JsonFormatter, PlainConsoleFormatter
from roomdesk.core.logger.setup import configure, get_logger

__all__ = [
    "LoggerConfig",
    "JsonFormatter",
    "PlainConsoleFormatter",
    "configure",
    "get_logger",
]
