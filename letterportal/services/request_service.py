"""
Letter request service

Submission and tracking for students; listing, status changes, file
attachment and letter generation for administrators. Status timestamps,
reference numbers and notifications are handled by the model events, so
the status change here is a plain column write.
"""

from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from letterportal.models import db, LetterRequest, LetterType, Student, StaffProfile
from letterportal.services.letter_renderer import RenderedLetter, render_letter
from letterportal.services.storage_service import get_storage, letter_file_key
from letterportal.utils.exceptions import DatabaseError, FileUploadError, NotFoundError, ValidationError
from letterportal.utils.validators import file_extension, validate_file_extension
from letterportal.utils.workflow import (
    RequestStatus, WORKFLOW_ORDER, can_transition, describe_status, next_status, parse_status
)

RECENT_REQUESTS_LIMIT = 5
REFERENCE_ATTEMPTS = 3


def normalize_reference(reference_number: Optional[str]) -> str:
    return (reference_number or '').strip().upper()


def _commit(action: str, retry_on=None) -> None:
    """Commit, rolling back on failure; `retry_on` errors are re-raised for the caller"""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        if retry_on is not None and isinstance(e, retry_on):
            raise
        current_app.logger.error(f"Failed to {action}: {e}")
        raise DatabaseError(f"Could not {action}")


def _is_reference_conflict(error: IntegrityError) -> bool:
    return 'reference_number' in str(error.orig)


class RequestService:
    """Letter request operations"""

    @staticmethod
    def upsert_student(data: Dict[str, Any]) -> Student:
        """Find the student by student ID and refresh their details, or create them"""
        student = Student.query.filter_by(student_id=data['student_id']).first()
        if student is None:
            student = Student(student_id=data['student_id'])
            db.session.add(student)

        student.name = data['name']
        student.program = data['program']
        student.email = data['email']
        student.phone = data['phone']
        return student

    @staticmethod
    def submit_request(data: Dict[str, Any]) -> LetterRequest:
        """
        Store a student's letter request

        Args:
            data: Loaded SubmissionSchema payload

        Returns:
            The new LetterRequest, with its generated reference number

        Raises:
            ValidationError: If the letter type is unknown or inactive
        """
        letter_type = db.session.get(LetterType, data['letter_type_id'])
        if letter_type is None or not letter_type.is_active:
            raise ValidationError("Selected letter type is not available")

        for attempt in range(1, REFERENCE_ATTEMPTS + 1):
            student = RequestService.upsert_student(data)
            letter_request = LetterRequest(
                student=student,
                letter_type=letter_type,
                purpose=data['purpose'],
                status=RequestStatus.SUBMITTED.value
            )
            db.session.add(letter_request)
            try:
                _commit('save letter request', retry_on=IntegrityError)
                break
            except IntegrityError as e:
                if attempt == REFERENCE_ATTEMPTS or not _is_reference_conflict(e):
                    current_app.logger.error(f"Failed to save letter request: {e}")
                    raise DatabaseError("Could not save letter request")
                current_app.logger.warning(
                    f"Reference number taken by a concurrent submission, retrying ({attempt})"
                )

        current_app.logger.info(
            f"Letter request {letter_request.reference_number} submitted by {student.student_id}"
        )
        return letter_request

    @staticmethod
    def find_by_reference(reference_number: str) -> Optional[LetterRequest]:
        reference = normalize_reference(reference_number)
        if not reference:
            return None
        return (LetterRequest.query
                .options(joinedload(LetterRequest.student), joinedload(LetterRequest.letter_type))
                .filter(func.upper(LetterRequest.reference_number) == reference)
                .first())

    @staticmethod
    def download_url(letter_request: LetterRequest) -> Optional[str]:
        """Signed download link once the letter is completed and attached"""
        if letter_request.status != RequestStatus.COMPLETED.value or not letter_request.file_url:
            return None
        return get_storage().get_signed_url(letter_request.file_url)

    @staticmethod
    def tracking_view(letter_request: LetterRequest) -> Dict[str, Any]:
        data = letter_request.to_dict()
        data['workflow'] = describe_status(letter_request.status)
        data['download_url'] = RequestService.download_url(letter_request)
        return data

    @staticmethod
    def track(reference_number: str) -> Optional[Dict[str, Any]]:
        """Public tracking view, or None when the reference is unknown"""
        letter_request = RequestService.find_by_reference(reference_number)
        if letter_request is None:
            return None
        return RequestService.tracking_view(letter_request)

    @staticmethod
    def history_for_account(user_id: int) -> List[LetterRequest]:
        student = Student.query.filter_by(user_id=user_id).first()
        if student is None:
            return []
        return (LetterRequest.query
                .filter_by(student_id=student.id)
                .order_by(LetterRequest.created_at.desc(), LetterRequest.id.desc())
                .all())

    @staticmethod
    def dashboard_stats() -> Dict[str, Any]:
        counts = dict(
            db.session.query(LetterRequest.status, func.count(LetterRequest.id))
            .group_by(LetterRequest.status)
            .all()
        )
        by_status = {status.value: counts.get(status.value, 0) for status in WORKFLOW_ORDER}
        recent = (LetterRequest.query
                  .order_by(LetterRequest.created_at.desc(), LetterRequest.id.desc())
                  .limit(RECENT_REQUESTS_LIMIT)
                  .all())
        return {
            'total_requests': sum(by_status.values()),
            'by_status': by_status,
            'total_students': Student.query.count(),
            'recent_requests': [item.to_dict() for item in recent],
        }

    @staticmethod
    def filtered_query(search: Optional[str] = None, status: Optional[str] = None):
        """
        Requests matching a free-text search and an optional status

        The search matches reference number, student name or student ID.
        """
        query = LetterRequest.query.join(Student, LetterRequest.student_id == Student.id)

        if status and status.lower() != 'all':
            try:
                query = query.filter(LetterRequest.status == parse_status(status).value)
            except ValueError:
                raise ValidationError(f"Invalid status filter: {status}")

        search = (search or '').strip()
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                LetterRequest.reference_number.ilike(pattern),
                Student.name.ilike(pattern),
                Student.student_id.ilike(pattern),
            ))

        return query.order_by(LetterRequest.created_at.desc(), LetterRequest.id.desc())

    @staticmethod
    def list_requests(search: Optional[str] = None, status: Optional[str] = None,
                      page: int = 1, per_page: Optional[int] = None):
        per_page = per_page or current_app.config.get('ITEMS_PER_PAGE', 10)
        return RequestService.filtered_query(search, status).paginate(
            page=page, per_page=per_page, error_out=False
        )

    @staticmethod
    def get_request(request_id: int) -> LetterRequest:
        letter_request = db.session.get(LetterRequest, request_id)
        if letter_request is None:
            raise NotFoundError("Letter request not found")
        return letter_request

    @staticmethod
    def detail_view(letter_request: LetterRequest) -> Dict[str, Any]:
        data = RequestService.tracking_view(letter_request)
        upcoming = next_status(letter_request.status)
        data['suggested_status'] = upcoming.value if upcoming else letter_request.status
        return data

    @staticmethod
    def update_status(request_id: int, new_status: str, admin_notes: Optional[str],
                      staff_profile: StaffProfile) -> LetterRequest:
        """
        Move a request forward and record who processed it

        Raises:
            ValidationError: On an unknown status or a backward move
        """
        letter_request = RequestService.get_request(request_id)
        try:
            target = parse_status(new_status)
        except ValueError:
            raise ValidationError(f"Invalid status: {new_status}")

        if not can_transition(letter_request.status, target):
            raise ValidationError(
                f"Cannot move a request from {letter_request.status} back to {target.value}"
            )

        letter_request.status = target.value
        letter_request.admin_notes = admin_notes or None
        letter_request.processed_by = staff_profile.id
        _commit('update request status')

        current_app.logger.info(
            f"Request {letter_request.reference_number} set to {target.value} by {staff_profile.email}"
        )
        return letter_request

    @staticmethod
    def attach_file(request_id: int, filename: str, data: bytes,
                    content_type: Optional[str] = None) -> LetterRequest:
        """
        Store a letter file under letters/<reference>.<ext>, replacing any earlier upload

        Raises:
            FileUploadError: If the file is empty or its type is not allowed
        """
        letter_request = RequestService.get_request(request_id)
        allowed = current_app.config.get('ALLOWED_EXTENSIONS', set())
        if not validate_file_extension(filename, allowed):
            raise FileUploadError(f"File type not allowed. Allowed: {', '.join(sorted(allowed))}")
        if not data:
            raise FileUploadError("Uploaded file is empty")

        storage = get_storage()
        key = letter_file_key(letter_request.reference_number, file_extension(filename))
        replaced = storage.object_exists(key)
        letter_request.file_url = storage.upload(
            key, data, content_type or 'application/octet-stream'
        )
        _commit('store letter file')

        if replaced:
            current_app.logger.info(f"File replaced for {letter_request.reference_number}: {key}")
        else:
            current_app.logger.info(f"File uploaded for {letter_request.reference_number}: {key}")
        return letter_request

    @staticmethod
    def generate_letter(request_id: int) -> RenderedLetter:
        return render_letter(RequestService.get_request(request_id))

    @staticmethod
    def generate_and_attach(request_id: int) -> LetterRequest:
        """Render the letter PDF and store it as the request's file"""
        letter_request = RequestService.get_request(request_id)
        rendered = render_letter(letter_request)
        return RequestService.attach_file(request_id, rendered.filename, rendered.pdf, 'application/pdf')

    @staticmethod
    def delete_request(request_id: int) -> None:
        letter_request = RequestService.get_request(request_id)
        reference = letter_request.reference_number
        db.session.delete(letter_request)
        _commit('delete letter request')
        current_app.logger.info(f"Letter request {reference} deleted")
