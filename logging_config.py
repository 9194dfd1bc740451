import logging
import os
import tomllib
from logging.handlers import RotatingFileHandler

LOGS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")


def configured_level(default=logging.INFO) -> int:
    """Log level from settings.toml [env].log_level, or default when unavailable."""
    try:
        from settings_service import SettingsService
        name = SettingsService().log_level
    except (FileNotFoundError, KeyError, tomllib.TOMLDecodeError):
        return default
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def setup_logging(name="app", log_file="pricing_admin.log", level=None, max_bytes=5*1024*1024, backup_count=3):
    """Set up logging configuration with a rotating file handler and a stream handler.

    All log files are routed to the project's ./logs/ directory unless an
    absolute path is provided (e.g. tests using tmpdir).

    Args:
        name: The name of the logger.
        log_file: The name of the log file.
        level: The level of the logger; settings.toml [env].log_level when None.
        max_bytes: The maximum size of the log file.
        backup_count: The number of backup log files.

    Returns:
        logger: The logger object.

    Example usage:
    from logging_config import setup_logging
    logger = setup_logging(__name__, log_file="pricing_service.log")
    """
    logger = logging.getLogger(name)
    # Clear existing handlers to avoid duplicate logs
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s %(levelname)-8s "
                                    "[%(filename)s:%(lineno)d %(funcName)s()] "
                                    "%(message)s")

    # Route log files to ./logs/ unless an absolute path is given
    if os.path.isabs(log_file):
        log_path = log_file
    else:
        os.makedirs(LOGS_DIR, exist_ok=True)
        log_file = os.path.basename(log_file)
        log_path = os.path.join(LOGS_DIR, log_file)

    file_handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8')
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    logger.setLevel(level if level is not None else configured_level())
    return logger
