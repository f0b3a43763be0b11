"""
Student routes

Submission, public tracking and the signed-in student's history.
"""

from flask import Blueprint, request, jsonify
from letterportal.models import db, LetterType, StudyProgram
from letterportal.schemas import SubmissionSchema
from letterportal.services.auth_service import login_required
from letterportal.services.request_service import RequestService
from letterportal.utils import ValidationError, log_error, create_response, load_payload

student_bp = Blueprint('student', __name__)


@student_bp.route('/letter-types', methods=['GET'])
def get_letter_types():
    """Active letter types for the submission form"""
    try:
        letter_types = LetterType.query.filter_by(is_active=True).order_by(LetterType.name).all()
        return jsonify(create_response(True, "Letter types retrieved",
                                       [item.to_dict() for item in letter_types]))
    except Exception as e:
        log_error("Get letter types error", e)
        return jsonify(create_response(False, "Failed to get letter types")), 500


@student_bp.route('/programs', methods=['GET'])
def get_programs():
    try:
        programs = StudyProgram.query.filter_by(is_active=True).order_by(StudyProgram.code).all()
        return jsonify(create_response(True, "Study programs retrieved",
                                       [item.to_dict() for item in programs]))
    except Exception as e:
        log_error("Get study programs error", e)
        return jsonify(create_response(False, "Failed to get study programs")), 500


@student_bp.route('/requests', methods=['POST'])
def submit_request():
    """Create a letter request and return its reference number"""
    try:
        data = load_payload(SubmissionSchema(), request.get_json(silent=True))
        letter_request = RequestService.submit_request(data)
        return jsonify(create_response(
            True,
            "Letter request submitted",
            letter_request.to_dict(),
            reference_number=letter_request.reference_number
        )), 201

    except ValidationError as e:
        db.session.rollback()
        return jsonify(create_response(False, str(e))), 400
    except Exception as e:
        log_error("Submit letter request error", e)
        db.session.rollback()
        return jsonify(create_response(False, str(e))), 500


@student_bp.route('/track/<reference_number>', methods=['GET'])
def track_request(reference_number):
    """Look up a request by reference number; no login needed"""
    try:
        tracking = RequestService.track(reference_number)
        if tracking is None:
            return jsonify(create_response(False, "Reference number not found", found=False)), 404
        return jsonify(create_response(True, "Request found", tracking, found=True))

    except Exception as e:
        log_error("Track request error", e)
        return jsonify(create_response(False, str(e))), 500


@student_bp.route('/student/requests', methods=['GET'])
@login_required
def get_student_requests(auth):
    """Requests of the student linked to the signed-in account"""
    try:
        letter_requests = RequestService.history_for_account(auth.user_id)
        return jsonify(create_response(True, "Requests retrieved",
                                       [item.to_dict() for item in letter_requests]))
    except Exception as e:
        log_error("Get student requests error", e)
        return jsonify(create_response(False, "Failed to get requests")), 500
