"""
Authentication service

The session is resolved once per request into an AuthSession and handed to
views explicitly by the `login_required` / `admin_required` decorators.
Sign-in, sign-out and password changes emit `auth_state_changed`.
"""

import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import wraps
from typing import Any, Dict, Optional

import jwt
from blinker import Namespace
from flask import current_app, g, jsonify, session

from letterportal.models import db, UserAccount, Student, StaffProfile
from letterportal.services.email_service import EmailService
from letterportal.utils.exceptions import (
    AuthenticationError, AuthorizationError, EmailError, ValidationError
)
from letterportal.utils.helpers import create_response
from letterportal.utils.validators import validate_email, validate_password

_signals = Namespace()
auth_state_changed = _signals.signal('auth-state-changed')

STUDENT_PORTAL = 'student'
ADMIN_PORTAL = 'admin'
RESET_PURPOSE = 'password_reset'


def _password_fingerprint(account: UserAccount) -> str:
    return hashlib.sha256(account.password_hash.encode('utf-8')).hexdigest()[:16]


@dataclass
class AuthSession:
    """Resolved authentication state for one request"""
    account: Optional[UserAccount] = None
    portal: Optional[str] = None
    student: Optional[Student] = None
    staff_profile: Optional[StaffProfile] = None

    @property
    def is_authenticated(self) -> bool:
        return self.account is not None

    @property
    def is_admin(self) -> bool:
        return (self.portal == ADMIN_PORTAL and self.staff_profile is not None
                and bool(self.staff_profile.is_active))

    @property
    def user_id(self) -> Optional[int]:
        return self.account.id if self.account else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'authenticated': self.is_authenticated,
            'portal': self.portal,
            'user': self.account.to_dict() if self.account else None,
            'student': self.student.to_dict() if self.student else None,
            'staff_profile': self.staff_profile.to_dict() if self.staff_profile else None,
        }


class AuthService:
    """Authentication service class"""

    @staticmethod
    def _normalize_email(email: str) -> str:
        return (email or '').strip().lower()

    @staticmethod
    def _validate_credentials(email: str, password: str) -> None:
        if not validate_email(email):
            raise ValidationError("Invalid email format")
        if not validate_password(password):
            raise ValidationError("Password must be at least 6 characters")

    @staticmethod
    def _create_account(email: str, password: str) -> UserAccount:
        email = AuthService._normalize_email(email)
        AuthService._validate_credentials(email, password)

        if UserAccount.query.filter_by(email=email).first():
            raise ValidationError("Email already registered")

        account = UserAccount(email=email)
        account.set_password(password)
        db.session.add(account)
        db.session.flush()
        return account

    @staticmethod
    def register_student(data: Dict[str, Any]) -> Student:
        """
        Create an account and the student record linked to it

        A student row that already exists for the student ID (from an earlier
        anonymous submission) is linked and refreshed instead of duplicated.

        Args:
            data: Loaded StudentRegistrationSchema payload

        Returns:
            The linked Student
        """
        account = AuthService._create_account(data['email'], data['password'])

        student = Student.query.filter_by(student_id=data['student_id']).first()
        if student is not None and student.user_id is not None:
            raise ValidationError("Student ID already registered")

        if student is None:
            student = Student(student_id=data['student_id'])
            db.session.add(student)

        student.name = data['name']
        student.program = data['program']
        student.email = account.email
        student.phone = data['phone']
        student.user_id = account.id

        db.session.commit()
        current_app.logger.info(f"Student registered: {student.student_id}")
        return student

    @staticmethod
    def register_admin(name: str, email: str, password: str) -> StaffProfile:
        """Create an account with an active admin profile"""
        if not name or not name.strip():
            raise ValidationError("Name is required")

        account = AuthService._create_account(email, password)
        profile = StaffProfile(
            user_id=account.id,
            name=name.strip(),
            email=account.email,
            role='admin',
            is_active=True
        )
        db.session.add(profile)
        db.session.commit()
        current_app.logger.info(f"Admin registered: {profile.email}")
        return profile

    @staticmethod
    def sign_in(email: str, password: str, portal: str = STUDENT_PORTAL) -> AuthSession:
        """
        Authenticate and start a session

        Raises:
            AuthenticationError: Wrong email or password
            AuthorizationError: Admin portal without an active staff profile
        """
        email = AuthService._normalize_email(email)
        if not email or not password:
            raise ValidationError("Please enter both email and password.")

        account = UserAccount.query.filter_by(email=email).first()
        if account is None or not account.check_password(password):
            raise AuthenticationError("Invalid email or password")

        if portal == ADMIN_PORTAL:
            profile = account.staff_profile
            if profile is None:
                raise AuthorizationError("This account is not an administrator")
            if not profile.is_active:
                raise AuthorizationError("Administrator account is inactive")

        session.clear()
        session['user_id'] = account.id
        session['portal'] = portal
        session.permanent = True
        g.pop('auth_session', None)

        auth = AuthService.current_session()
        auth_state_changed.send(current_app._get_current_object(), event='SIGNED_IN', auth=auth)
        return auth

    @staticmethod
    def sign_out() -> None:
        auth = AuthService.current_session()
        session.clear()
        g.pop('auth_session', None)
        auth_state_changed.send(current_app._get_current_object(), event='SIGNED_OUT', auth=auth)

    @staticmethod
    def current_session() -> AuthSession:
        """Resolve the request's session once and cache it on `g`"""
        if 'auth_session' in g:
            return g.auth_session

        auth = AuthSession()
        user_id = session.get('user_id')
        if user_id is not None:
            account = db.session.get(UserAccount, user_id)
            if account is not None:
                auth = AuthSession(
                    account=account,
                    portal=session.get('portal', STUDENT_PORTAL),
                    student=account.student,
                    staff_profile=account.staff_profile,
                )
            else:
                session.clear()

        g.auth_session = auth
        return auth

    @staticmethod
    def create_reset_token(account: UserAccount) -> str:
        expires = datetime.utcnow() + timedelta(minutes=current_app.config['RESET_TOKEN_EXPIRES_MIN'])
        payload = {
            'uid': account.id,
            'purpose': RESET_PURPOSE,
            # Ties the token to the current password so it works only once
            'fp': _password_fingerprint(account),
            'exp': expires,
        }
        return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm='HS256')

    @staticmethod
    def verify_reset_token(token: str) -> UserAccount:
        """
        Raises:
            AuthenticationError: If the token is invalid, expired or already used
        """
        try:
            payload = jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=['HS256'])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Reset link has expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid reset link")

        if payload.get('purpose') != RESET_PURPOSE:
            raise AuthenticationError("Invalid reset link")

        account = db.session.get(UserAccount, payload.get('uid'))
        if account is None or _password_fingerprint(account) != payload.get('fp'):
            raise AuthenticationError("Invalid reset link")
        return account

    @staticmethod
    def request_password_reset(email: str, portal: str = STUDENT_PORTAL) -> None:
        """
        Email a reset link when the address belongs to an account

        Unknown addresses are silently accepted. Delivery failures are logged.
        """
        email = AuthService._normalize_email(email)
        if not validate_email(email):
            raise ValidationError("Invalid email format")

        account = UserAccount.query.filter_by(email=email).first()
        if account is None:
            current_app.logger.info(f"Password reset requested for unknown email {email}")
            return

        token = AuthService.create_reset_token(account)
        site_url = current_app.config.get('SITE_URL', '').rstrip('/')
        path = '/admin/reset-password' if portal == ADMIN_PORTAL else '/reset-password'
        reset_url = f"{site_url}{path}?token={token}"

        full_name = ''
        if account.staff_profile:
            full_name = account.staff_profile.name
        elif account.student:
            full_name = account.student.name

        try:
            EmailService.send_password_reset_email(account.email, full_name, reset_url)
        except EmailError as e:
            current_app.logger.warning(f"Password reset email failed for {account.email}: {e}")
        auth_state_changed.send(current_app._get_current_object(), event='PASSWORD_RECOVERY',
                                auth=AuthSession(account=account, portal=portal))

    @staticmethod
    def reset_password(token: str, new_password: str) -> UserAccount:
        if not validate_password(new_password):
            raise ValidationError("Password must be at least 6 characters")

        account = AuthService.verify_reset_token(token)
        account.set_password(new_password)
        db.session.commit()
        auth_state_changed.send(current_app._get_current_object(), event='USER_UPDATED',
                                auth=AuthSession(account=account))
        return account

    @staticmethod
    def update_password(auth: AuthSession, current_password: str, new_password: str) -> None:
        """Change the signed-in user's password"""
        if not auth.is_authenticated:
            raise AuthenticationError("Authentication required")
        if not auth.account.check_password(current_password or ''):
            raise AuthenticationError("Current password is incorrect")
        if not validate_password(new_password):
            raise ValidationError("Password must be at least 6 characters")

        auth.account.set_password(new_password)
        db.session.commit()
        auth_state_changed.send(current_app._get_current_object(), event='USER_UPDATED', auth=auth)


def login_required(view):
    """Pass the signed-in AuthSession as the view's first argument"""
    @wraps(view)
    def wrapper(*args, **kwargs):
        auth = AuthService.current_session()
        if not auth.is_authenticated:
            return jsonify(create_response(False, "Authentication required")), 401
        return view(auth, *args, **kwargs)
    return wrapper


def admin_required(view):
    """Like login_required, but the session must belong to an active admin"""
    @wraps(view)
    def wrapper(*args, **kwargs):
        auth = AuthService.current_session()
        if not auth.is_authenticated:
            return jsonify(create_response(False, "Authentication required")), 401
        if not auth.is_admin:
            return jsonify(create_response(False, "Admin access required")), 403
        return view(auth, *args, **kwargs)
    return wrapper
