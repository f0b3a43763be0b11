"""
Validation utilities
"""

import re
from typing import Any, Dict, Optional

from marshmallow import Schema
from marshmallow import ValidationError as SchemaValidationError

from letterportal.utils.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def validate_email(email: str) -> bool:
    """
    Validate email format

    Args:
        email: Email to validate

    Returns:
        True if valid email
    """
    if not email or not isinstance(email, str):
        return False

    return bool(EMAIL_PATTERN.match(email.strip()))


def validate_password(password: str) -> bool:
    """Passwords need at least 6 characters"""
    if not password or not isinstance(password, str):
        return False

    return len(password) >= 6


def validate_phone_number(phone: str) -> bool:
    """
    Validate phone number format

    Args:
        phone: Phone number to validate

    Returns:
        True if the number has 7-15 digits once separators are removed
    """
    if not phone or not isinstance(phone, str):
        return False

    digits_only = re.sub(r'\D', '', phone)
    return 7 <= len(digits_only) <= 15


def validate_file_extension(filename: str, allowed_extensions: set) -> bool:
    """
    Validate file extension

    Args:
        filename: Name of the file
        allowed_extensions: Set of allowed extensions

    Returns:
        True if extension is allowed
    """
    if not filename or '.' not in filename:
        return False

    return file_extension(filename) in allowed_extensions


def file_extension(filename: str) -> str:
    return filename.rsplit('.', 1)[1].lower() if '.' in filename else ''


def load_payload(schema: Schema, data: Optional[Dict[str, Any]], partial: bool = False) -> Dict[str, Any]:
    """
    Run a marshmallow schema over request data

    Args:
        schema: Schema instance to load with
        data: Raw JSON payload
        partial: Allow missing required fields (updates)

    Returns:
        Deserialized data

    Raises:
        ValidationError: With the first field message when the payload is invalid
    """
    if not data:
        raise ValidationError("No data provided")

    try:
        return schema.load(data, partial=partial)
    except SchemaValidationError as e:
        raise ValidationError(format_schema_errors(e.messages))


def format_schema_errors(messages: Any) -> str:
    if isinstance(messages, dict):
        parts = []
        for field, errors in messages.items():
            if isinstance(errors, (list, tuple)):
                errors = ', '.join(str(err) for err in errors)
            parts.append(f"{field}: {errors}")
        return '; '.join(parts)
    return str(messages)
