"""
Helper utilities
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any

from flask import current_app


def setup_logging() -> None:
    """Setup application logging"""
    level = logging.DEBUG if current_app.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s %(message)s'
    )
    current_app.logger.setLevel(level)


def log_error(message: str, exception: Optional[Exception] = None) -> None:
    """
    Log error message

    Args:
        message: Error message
        exception: Exception object
    """
    if exception:
        current_app.logger.error(f"{message}: {str(exception)}")
    else:
        current_app.logger.error(message)


def log_warning(message: str) -> None:
    current_app.logger.warning(message)


def log_info(message: str) -> None:
    """
    Log info message

    Args:
        message: Info message
    """
    current_app.logger.info(message)


def create_response(success: bool, message: str, data: Optional[Any] = None, **extra: Any) -> Dict[str, Any]:
    """
    Create standardized API response

    Args:
        success: Whether operation was successful
        message: Response message
        data: Optional data to include
        extra: Additional top-level keys

    Returns:
        Standardized response dictionary
    """
    response = {
        'ok': success,
        'message': message
    }

    if data is not None:
        response['data'] = data

    response.update(extra)
    return response


def isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_page(value: Optional[str]) -> int:
    """Page number from a query string, never below 1"""
    try:
        return max(int(value or 1), 1)
    except (TypeError, ValueError):
        return 1
