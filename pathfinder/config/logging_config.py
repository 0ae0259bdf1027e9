"""
pathFinder Logging Configuration
Console + rotating file logging with redaction of credentials
"""
import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler

# Log directory (override with PATHFINDER_LOG_DIR)
LOG_DIR = os.environ.get(
    "PATHFINDER_LOG_DIR",
    os.path.join(os.path.expanduser("~"), ".pathfinder", "logs"),
)

# Security-sensitive patterns (will be redacted from logs)
SENSITIVE_PATTERNS = [
    (re.compile(r'(password=)([^&\s]+)', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(api[_-]?key=)([^&\s]+)', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(token=)([^&\s]+)', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(secret=)([^&\s]+)', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(Authorization:\s*)(.+)', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(Cookie:\s*)(.+)', re.IGNORECASE), r'\1[REDACTED]'),
]


class SecureFormatter(logging.Formatter):
    """Formatter that redacts sensitive information"""

    def format(self, record):
        message = super().format(record)
        for compiled, replacement in SENSITIVE_PATTERNS:
            message = compiled.sub(replacement, message)
        return message


def get_logger(name, level=logging.DEBUG, log_to_file=True):
    """
    Get a configured logger instance

    Args:
        name: Logger name (usually __name__)
        level: Logging level
        log_to_file: Whether to log to file

    Returns:
        logging.Logger: Configured logger
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(level)

    # Console handler (always)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(SecureFormatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    ))
    logger.addHandler(console_handler)

    if log_to_file:
        os.makedirs(LOG_DIR, exist_ok=True)
        module_name = name.split('.')[-1]
        log_file = os.path.join(LOG_DIR, f"{module_name}.log")

        # Rotating file handler (max 10MB per file, keep 5 backups)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(SecureFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(pathname)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    return logger


def set_console_level(level):
    """Adjust console verbosity of every pathfinder logger"""
    for logger in (engine_logger, seeds_logger, report_logger, cli_logger):
        for handler in logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(level)


def setup_application_logging():
    """Setup main application logging configuration"""
    os.makedirs(LOG_DIR, exist_ok=True)

    app_format = SecureFormatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Daily rotating handler (keeps 30 days of logs)
    app_handler = TimedRotatingFileHandler(
        os.path.join(LOG_DIR, "pathfinder.log"),
        when='midnight',
        interval=1,
        backupCount=30,
        encoding='utf-8'
    )
    app_handler.setFormatter(app_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.handlers.clear()
    root_logger.addHandler(app_handler)

    # Error-only log
    error_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, "errors.log"),
        maxBytes=5*1024*1024,
        backupCount=3,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(app_format)
    root_logger.addHandler(error_handler)

    # Suppress noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    return root_logger


# Loggers for main modules (can be imported directly)
engine_logger = get_logger('pathfinder.engine')
seeds_logger = get_logger('pathfinder.seeds')
report_logger = get_logger('pathfinder.report')
cli_logger = get_logger('pathfinder.cli')
