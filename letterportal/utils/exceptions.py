"""
Custom exceptions for the LetterPortal application
"""


class LetterPortalException(Exception):
    """Base exception for LetterPortal application"""
    status_code = 500


class ValidationError(LetterPortalException):
    """Validation error"""
    status_code = 400


class AuthenticationError(LetterPortalException):
    """Authentication error"""
    status_code = 401


class AuthorizationError(LetterPortalException):
    """Authorization error"""
    status_code = 403


class NotFoundError(LetterPortalException):
    """Requested record does not exist"""
    status_code = 404


class DatabaseError(LetterPortalException):
    """Database error"""
    pass


class EmailError(LetterPortalException):
    """Email service error"""
    pass


class FileUploadError(LetterPortalException):
    """File upload error"""
    status_code = 400


class StorageError(LetterPortalException):
    """Object storage error"""
    pass
