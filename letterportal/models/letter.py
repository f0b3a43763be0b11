"""
Letter catalog and request models
"""

from datetime import datetime
from sqlalchemy.orm import column_property

from letterportal.models.user import db
from letterportal.utils.helpers import isoformat
from letterportal.utils.workflow import RequestStatus, STATUS_VALUES


class LetterType(db.Model):
    """Requestable letter kind and its body template"""
    __tablename__ = 'letter_types'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(30), unique=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    addressee = db.Column(db.String(255), nullable=True)
    body_template = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    letter_requests = db.relationship('LetterRequest', backref='letter_type', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'description': self.description,
            'is_active': self.is_active,
            'addressee': self.addressee,
            'body_template': self.body_template,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at)
        }


class StudyProgram(db.Model):
    """Study program offered on the submission and registration forms"""
    __tablename__ = 'study_programs'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(30), unique=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    faculty = db.Column(db.String(200), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'faculty': self.faculty,
            'is_active': self.is_active,
            'created_at': isoformat(self.created_at)
        }


class LetterRequest(db.Model):
    """Letter request model"""
    __tablename__ = 'letter_requests'

    id = db.Column(db.Integer, primary_key=True)
    # Assigned on insert by the model events, never by clients
    reference_number = column_property(db.Column(db.String(32), unique=True, nullable=False),
                                       active_history=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=False)
    letter_type_id = db.Column(db.Integer, db.ForeignKey('letter_types.id'), nullable=False)
    purpose = db.Column(db.Text, nullable=False)
    status = column_property(db.Column(db.Enum(*STATUS_VALUES, name='request_status'),
                                       default=RequestStatus.SUBMITTED.value, nullable=False),
                             active_history=True)
    admin_notes = db.Column(db.Text, nullable=True)
    file_url = db.Column(db.Text, nullable=True)
    processed_by = db.Column(db.Integer, db.ForeignKey('staff_profiles.id'), nullable=True)
    submitted_at = db.Column(db.DateTime, default=datetime.utcnow)
    approved_at = db.Column(db.DateTime, nullable=True)
    processing_started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self, include_relations: bool = True):
        """Convert to dictionary"""
        data = {
            'id': self.id,
            'reference_number': self.reference_number,
            'student_id': self.student_id,
            'letter_type_id': self.letter_type_id,
            'purpose': self.purpose,
            'status': self.status,
            'admin_notes': self.admin_notes,
            'file_url': self.file_url,
            'processed_by': self.processed_by,
            'submitted_at': isoformat(self.submitted_at),
            'approved_at': isoformat(self.approved_at),
            'processing_started_at': isoformat(self.processing_started_at),
            'completed_at': isoformat(self.completed_at),
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at)
        }
        if include_relations:
            data['student'] = self.student.to_dict() if self.student else None
            data['letter_type'] = self.letter_type.to_dict() if self.letter_type else None
            data['processor_name'] = self.processor.name if self.processor else None
        return data
