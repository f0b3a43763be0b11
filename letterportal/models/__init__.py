"""
Database models initialization
"""

from letterportal.models.user import db, UserAccount, Student, StaffProfile
from letterportal.models.letter import LetterType, StudyProgram, LetterRequest
from letterportal.models import events  # noqa: F401

# Export all models
__all__ = ['db', 'UserAccount', 'Student', 'StaffProfile', 'LetterType', 'StudyProgram', 'LetterRequest']
