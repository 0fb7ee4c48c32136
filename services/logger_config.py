# services/logger_config.py
import logging
from logging.handlers import RotatingFileHandler
import os
import sys
from config import settings

def setup_logging(level: int = logging.INFO):
    """
    Sets up the logging configuration for the document search service.
    Logs are written to a rotating file and also printed to the console.
    """
    logger = logging.getLogger(settings.LOGGER_NAME)

    # Avoid adding duplicate handlers if this function is called multiple times
    if logger.hasHandlers():
        logger.handlers.clear()

    logger.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
    )

    # File Handler: Rotates logs to prevent large files.
    try:
        log_dir = os.path.dirname(settings.LOG_FILE_PATH)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            settings.LOG_FILE_PATH,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=5
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)  # Pipeline state transitions end up here
        logger.addHandler(file_handler)
    except OSError as e:
        sys.stderr.write(f"Error setting up file logger: {e}\n")

    logger.propagate = True

    # Console Handler: For immediate feedback during development.
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    logger.info("Logging configured successfully.")
