import logging
import os

LOG_FILENAME = "fswatch.log"


def setup_logger(name, level=logging.WARNING, log_dir=None):
    """
    Set up and return a logger writing diagnostics to stderr and, optionally, a file.

    Standard output is reserved for the event log, so the console handler
    always targets stderr.

    Args:
        name (str): The logger name.
        level (int|str): Logging level, numeric or a name such as "DEBUG".
        log_dir (str): When set, also log to <log_dir>/fswatch.log.

    Returns:
        logging.Logger: The configured logger.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear out any existing handlers.
    logger.handlers = []

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_dir, LOG_FILENAME))
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
