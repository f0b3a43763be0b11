"""
Utilities package initialization
"""

from letterportal.utils.exceptions import (
    LetterPortalException, ValidationError, AuthenticationError,
    AuthorizationError, NotFoundError, DatabaseError, EmailError,
    FileUploadError, StorageError
)
from letterportal.utils.validators import (
    validate_email, validate_password, validate_phone_number, validate_file_extension,
    load_payload
)
from letterportal.utils.helpers import (
    setup_logging, log_error, log_info, log_warning, create_response,
    isoformat, parse_page
)

__all__ = [
    'LetterPortalException', 'ValidationError', 'AuthenticationError',
    'AuthorizationError', 'NotFoundError', 'DatabaseError', 'EmailError',
    'FileUploadError', 'StorageError',
    'validate_email', 'validate_password', 'validate_phone_number', 'validate_file_extension',
    'load_payload',
    'setup_logging', 'log_error', 'log_info', 'log_warning', 'create_response',
    'isoformat', 'parse_page'
]
