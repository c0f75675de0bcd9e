import logging
import sys

from settings import settings


def setup_logger(name: str) -> logging.Logger:
    """
    Sets up a logger writing DEBUG and above to the planner log file and
    INFO and above to the console.

    Args:
        name: The name of the logger (usually __name__).

    Returns:
        logging.Logger: The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Handlers are attached once per logger name
    if not logger.handlers:
        try:
            file_handler = logging.FileHandler(settings.log_file, mode='a', encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            sys.stderr.write(f"Failed to setup file handler for {settings.log_file}: {e}\n")

        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setLevel(logging.INFO)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    return logger
