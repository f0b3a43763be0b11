"""
Authentication routes
"""

from flask import Blueprint, request, jsonify
from letterportal.models import db
from letterportal.schemas import AdminRegistrationSchema, StudentRegistrationSchema
from letterportal.services.auth_service import (
    ADMIN_PORTAL, STUDENT_PORTAL, AuthService, login_required
)
from letterportal.utils import (
    ValidationError, AuthenticationError, AuthorizationError, log_error, create_response,
    load_payload
)

auth_bp = Blueprint('auth', __name__)


def _json_body():
    return request.get_json(silent=True) or {}


def _login(portal):
    data = _json_body()
    auth = AuthService.sign_in(data.get('email', ''), data.get('password', ''), portal)
    return jsonify(create_response(True, "Login successful", auth.to_dict()))


@auth_bp.route('/student/register', methods=['POST'])
def register_student():
    """Create a student account"""
    try:
        data = load_payload(StudentRegistrationSchema(), request.get_json(silent=True))
        student = AuthService.register_student(data)
        return jsonify(create_response(True, "Registration successful", student.to_dict())), 201

    except ValidationError as e:
        db.session.rollback()
        return jsonify(create_response(False, str(e))), 400
    except Exception as e:
        log_error("Student registration error", e)
        db.session.rollback()
        return jsonify(create_response(False, str(e))), 500


@auth_bp.route('/student/login', methods=['POST'])
def login_student():
    try:
        return _login(STUDENT_PORTAL)
    except ValidationError as e:
        return jsonify(create_response(False, str(e))), 400
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except Exception as e:
        log_error("Login error", e)
        return jsonify(create_response(False, "Login failed. Please try again.")), 500


@auth_bp.route('/admin/register', methods=['POST'])
def register_admin():
    """Create an administrator account"""
    try:
        data = load_payload(AdminRegistrationSchema(), request.get_json(silent=True))
        profile = AuthService.register_admin(data['name'], data['email'], data['password'])
        return jsonify(create_response(True, "Registration successful", profile.to_dict())), 201

    except ValidationError as e:
        db.session.rollback()
        return jsonify(create_response(False, str(e))), 400
    except Exception as e:
        log_error("Admin registration error", e)
        db.session.rollback()
        return jsonify(create_response(False, str(e))), 500


@auth_bp.route('/admin/login', methods=['POST'])
def login_admin():
    try:
        return _login(ADMIN_PORTAL)
    except ValidationError as e:
        return jsonify(create_response(False, str(e))), 400
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Admin login error", e)
        return jsonify(create_response(False, "Login failed. Please try again.")), 500


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Handle user logout"""
    try:
        AuthService.sign_out()
        return jsonify(create_response(True, "Logged out successfully"))
    except Exception as e:
        log_error("Logout error", e)
        return jsonify(create_response(False, "Logout failed")), 500


@auth_bp.route('/session', methods=['GET'])
def get_session():
    """Resolved session state for the current request"""
    try:
        auth = AuthService.current_session()
        return jsonify(create_response(True, "Session resolved", auth.to_dict()))
    except Exception as e:
        log_error("Get session error", e)
        return jsonify(create_response(False, "Failed to get session")), 500


@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    """Email a reset link; the answer is the same whether or not the email is known"""
    try:
        data = _json_body()
        portal = ADMIN_PORTAL if data.get('portal') == ADMIN_PORTAL else STUDENT_PORTAL
        AuthService.request_password_reset(data.get('email', ''), portal)
        return jsonify(create_response(
            True, "If the email is registered, a password reset link has been sent"
        ))

    except ValidationError as e:
        return jsonify(create_response(False, str(e))), 400
    except Exception as e:
        log_error("Forgot password error", e)
        return jsonify(create_response(False, "Failed to process request")), 500


@auth_bp.route('/reset-password', methods=['POST'])
def reset_password():
    try:
        data = _json_body()
        password = data.get('password', '')
        if password != data.get('confirm_password', password):
            raise ValidationError("Passwords do not match")

        AuthService.reset_password(data.get('token', ''), password)
        return jsonify(create_response(True, "Password has been reset"))

    except ValidationError as e:
        db.session.rollback()
        return jsonify(create_response(False, str(e))), 400
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 400
    except Exception as e:
        log_error("Reset password error", e)
        db.session.rollback()
        return jsonify(create_response(False, "Failed to reset password")), 500


@auth_bp.route('/change-password', methods=['POST'])
@login_required
def change_password(auth):
    try:
        data = _json_body()
        new_password = data.get('new_password', '')
        if new_password != data.get('confirm_password', new_password):
            raise ValidationError("Passwords do not match")

        AuthService.update_password(auth, data.get('current_password', ''), new_password)
        return jsonify(create_response(True, "Password updated"))

    except ValidationError as e:
        db.session.rollback()
        return jsonify(create_response(False, str(e))), 400
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except Exception as e:
        log_error("Change password error", e)
        db.session.rollback()
        return jsonify(create_response(False, "Failed to update password")), 500
