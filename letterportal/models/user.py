"""
User models for the LetterPortal application
"""

from datetime import datetime
from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import generate_password_hash, check_password_hash

from letterportal.utils.helpers import isoformat

db = SQLAlchemy()


class UserAccount(db.Model):
    """Authentication identity shared by students and staff"""
    __tablename__ = 'user_accounts'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    student = db.relationship('Student', backref='user', uselist=False, lazy=True)
    staff_profile = db.relationship('StaffProfile', backref='user', uselist=False, lazy=True)

    def set_password(self, password):
        """Set password hash"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check password"""
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'created_at': isoformat(self.created_at)
        }


class Student(db.Model):
    """Student model"""
    __tablename__ = 'students'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    student_id = db.Column(db.String(30), unique=True, nullable=False)
    program = db.Column(db.String(150), nullable=False, default='')
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(30), nullable=False, default='')
    user_id = db.Column(db.Integer, db.ForeignKey('user_accounts.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    letter_requests = db.relationship('LetterRequest', backref='student', lazy=True,
                                      cascade='all, delete-orphan')

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'student_id': self.student_id,
            'program': self.program,
            'email': self.email,
            'phone': self.phone,
            'user_id': self.user_id,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at)
        }


class StaffProfile(db.Model):
    """Administrator account profile"""
    __tablename__ = 'staff_profiles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user_accounts.id'), unique=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum('super_admin', 'admin', name='staff_role'), default='admin')
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    processed_requests = db.relationship('LetterRequest', backref='processor', lazy=True)

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'is_active': self.is_active,
            'created_at': isoformat(self.created_at)
        }
