"""Secure logging utilities for the resolver.

Provides sanitized logging that removes sensitive information like tokens,
emails, IP addresses and device fingerprints before outputting to logs.
"""
import json
import logging
import re
from typing import Any, Dict, Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger('identity-resolver')

_RE_IPV4 = re.compile(r'\b(?:\d{1,3}\.){3}\d{1,3}\b')
_RE_IPV6 = re.compile(r'(?<![0-9a-f:])(?:[0-9a-f]{0,4}:){3,7}[0-9a-f]{1,4}\b', re.IGNORECASE)


def configure_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    """Apply the configured level (and optionally format) to the resolver logger."""
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt, datefmt='%Y-%m-%d %H:%M:%S'))


def sanitize_text(text: str) -> str:
    """Remove sensitive information from text.

    Args:
        text: Input text that may contain sensitive data

    Returns:
        Sanitized text with sensitive patterns replaced
    """
    if not text:
        return text

    # Email addresses
    text = re.sub(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}', '<email>', text)

    # JWTs (Supabase keys are JWTs)
    text = re.sub(r'eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+', '<jwt>', text)

    # UUIDs (user ids)
    text = re.sub(r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}', '<uuid>', text, flags=re.IGNORECASE)

    # IP addresses
    text = _RE_IPV4.sub('<ip>', text)
    text = _RE_IPV6.sub('<ip>', text)

    # Long hex strings (device fingerprints, hashes)
    text = re.sub(r'\b[0-9a-f]{24,}\b', '<hash>', text, flags=re.IGNORECASE)

    # Remaining long tokens
    text = re.sub(r'[a-zA-Z0-9]{32,}', '<token>', text)

    return text


def safe_json(obj: Any, max_length: int = 1000) -> str:
    """Safely serialize object to JSON with sensitive data sanitized.

    Args:
        obj: Object to serialize
        max_length: Maximum length of output string

    Returns:
        Sanitized JSON string
    """
    try:
        json_str = json.dumps(obj, indent=2, ensure_ascii=False, default=str)
        sanitized = sanitize_text(json_str)

        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length] + "... [truncated]"

        return sanitized
    except Exception:
        return "<unable to serialize>"


def log_info(message: str, **kwargs) -> None:
    """Log info message with optional sanitized context."""
    if kwargs:
        context = safe_json(kwargs)
        logger.info(f"{message} | Context: {context}")
    else:
        logger.info(message)


def log_warning(message: str, **kwargs) -> None:
    """Log warning message with optional sanitized context."""
    if kwargs:
        context = safe_json(kwargs)
        logger.warning(f"{message} | Context: {context}")
    else:
        logger.warning(message)


def log_error(message: str, **kwargs) -> None:
    """Log error message with optional sanitized context."""
    if kwargs:
        context = safe_json(kwargs)
        logger.error(f"{message} | Context: {context}")
    else:
        logger.error(message)


def log_debug(message: str, **kwargs) -> None:
    """Log debug message with optional sanitized context."""
    if kwargs:
        context = safe_json(kwargs)
        logger.debug(f"{message} | Context: {context}")
    else:
        logger.debug(message)


def log_api_response(operation: str, status_code: int, response_data: Optional[Dict] = None) -> None:
    """Log API response with sanitized data.

    Args:
        operation: Description of the API operation
        status_code: HTTP status code
        response_data: Optional response data to log (will be sanitized)
    """
    if response_data:
        sanitized_data = safe_json(response_data, max_length=500)
        log_info(f"API {operation} completed",
                 status_code=status_code,
                 response_preview=sanitized_data)
    else:
        log_info(f"API {operation} completed", status_code=status_code)


def log_duplicate_report(total_groups: int, total_duplicates: int, **kwargs) -> None:
    """Log the outcome of a duplicate detection pass.

    Args:
        total_groups: Number of groups with two or more users
        total_duplicates: Number of non-primary users across those groups
        **kwargs: Additional context
    """
    log_info("Duplicate detection finished",
             total_groups=total_groups,
             total_duplicates=total_duplicates,
             **kwargs)


def log_resolver_progress(stage: str, **kwargs) -> None:
    """Log resolver progress through different stages.

    Args:
        stage: Current stage of processing
        **kwargs: Additional context
    """
    log_info(f"Resolver progress: {stage}", **kwargs)
