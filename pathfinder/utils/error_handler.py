"""
pathFinder Error Handling Utilities
Exception hierarchy, URL validation and contextual error logging
"""

import logging
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


# Custom Exceptions
class PathFinderError(Exception):
    """Base exception for pathFinder"""
    pass


class SetupError(PathFinderError):
    """Fatal error raised before workers start (seeds, target, output)"""
    pass


class ValidationError(PathFinderError):
    """Input validation errors"""
    pass


class ReportError(PathFinderError):
    """Writing results failed"""
    pass


# URL validation
def validate_url(url: str, require_scheme: bool = True) -> bool:
    """
    Validate URL format

    Args:
        url: URL to validate
        require_scheme: Whether to require http:// or https://

    Returns:
        bool: True if URL is valid

    Raises:
        ValidationError: If URL is invalid
    """
    if not url or not isinstance(url, str):
        raise ValidationError("URL must be a non-empty string")

    if len(url) > 2048:
        raise ValidationError("URL exceeds maximum length of 2048 characters")

    # raw value: surrounding whitespace would end up in every task URL
    if any(char in url for char in ['\x00', '\r', '\n', '\t', ' ']):
        raise ValidationError("URL contains invalid characters")

    try:
        result = urlparse(url)
    except ValueError as e:
        raise ValidationError(f"Invalid URL format: {e}")

    if require_scheme:
        if not result.scheme:
            raise ValidationError("URL must include scheme (http:// or https://)")
        if result.scheme not in ('http', 'https'):
            raise ValidationError("URL scheme must be http:// or https://")

    if not result.netloc:
        raise ValidationError("URL must include a hostname")

    if result.hostname in ('localhost', '127.0.0.1', '0.0.0.0'):
        logger.debug(f"URL points to localhost/internal IP: {url}")

    return True


# Error logging with context
def log_error_with_context(error: Exception, context: dict = None,
                           level: str = 'error', log: logging.Logger = None) -> None:
    """
    Log error with additional context

    Args:
        error: Exception to log
        context: Additional context dictionary
        level: Log level ('debug', 'info', 'warning', 'error', 'critical')
        log: Logger to use (defaults to this module's logger)
    """
    log = log or logger
    log_method = getattr(log, level.lower(), log.error)

    context_str = ""
    if context:
        context_str = " | Context: " + ", ".join(f"{k}={v}" for k, v in context.items())

    log_method(f"{error.__class__.__name__}: {str(error)}{context_str}",
               exc_info=error if level.lower() in ('error', 'critical') else None)
