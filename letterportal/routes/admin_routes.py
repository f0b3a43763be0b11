"""
Admin routes

Every route requires an active staff session and receives it as `auth`.
"""

from flask import Blueprint, Response, request, jsonify
from sqlalchemy import or_

from letterportal.models import db, LetterType, Student, StudyProgram
from letterportal.models.events import TRACKED_MODELS
from letterportal.schemas import (
    LetterTypeSchema, ProfileSchema, StatusUpdateSchema, StudentSchema, StudyProgramSchema
)
from letterportal.services.auth_service import admin_required
from letterportal.services.catalog_service import CatalogService, csv_response, decode_upload
from letterportal.services.letter_renderer import letter_download_response
from letterportal.services.realtime import get_change_feed, stream_events
from letterportal.services.request_service import RequestService
from letterportal.utils import (
    LetterPortalException, NotFoundError, ValidationError, log_error, create_response,
    load_payload, parse_page
)

admin_bp = Blueprint('admin', __name__)

TRACKED_TABLES = {model.__tablename__ for model in TRACKED_MODELS}


def _error(e: LetterPortalException):
    db.session.rollback()
    return jsonify(create_response(False, str(e))), e.status_code


def _failure(message: str, e: Exception):
    log_error(message, e)
    db.session.rollback()
    return jsonify(create_response(False, str(e))), 500


def _pagination_meta(pagination):
    return {
        'page': pagination.page,
        'per_page': pagination.per_page,
        'total': pagination.total,
        'pages': pagination.pages,
    }


def _uploaded_csv() -> str:
    upload = request.files.get('file')
    if upload is not None:
        return decode_upload(upload.read())
    content = request.get_data(as_text=True)
    if not content.strip():
        raise ValidationError("No CSV file provided")
    return content


def _get_or_404(model, record_id, label):
    record = db.session.get(model, record_id)
    if record is None:
        raise NotFoundError(f"{label} not found")
    return record


# Dashboard

@admin_bp.route('/dashboard', methods=['GET'])
@admin_required
def dashboard(auth):
    try:
        return jsonify(create_response(True, "Dashboard retrieved", RequestService.dashboard_stats()))
    except Exception as e:
        return _failure("Dashboard error", e)


# Letter requests

@admin_bp.route('/requests', methods=['GET'])
@admin_required
def list_requests(auth):
    """Paginated request list with search and status filter"""
    try:
        pagination = RequestService.list_requests(
            search=request.args.get('search'),
            status=request.args.get('status'),
            page=parse_page(request.args.get('page'))
        )
        return jsonify(create_response(
            True, "Requests retrieved",
            [item.to_dict() for item in pagination.items],
            pagination=_pagination_meta(pagination)
        ))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("List requests error", e)


@admin_bp.route('/requests/export', methods=['GET'])
@admin_required
def export_requests(auth):
    try:
        query = RequestService.filtered_query(request.args.get('search'), request.args.get('status'))
        return csv_response(CatalogService.export_requests(query.all()), 'letter-requests')
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Export requests error", e)


@admin_bp.route('/requests/<int:request_id>', methods=['GET'])
@admin_required
def get_request(auth, request_id):
    try:
        letter_request = RequestService.get_request(request_id)
        return jsonify(create_response(True, "Request retrieved", RequestService.detail_view(letter_request)))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Get request error", e)


@admin_bp.route('/requests/<int:request_id>/status', methods=['PUT'])
@admin_required
def update_request_status(auth, request_id):
    """Set status and admin notes; timestamps and the email follow from the write"""
    try:
        data = load_payload(StatusUpdateSchema(), request.get_json(silent=True))
        letter_request = RequestService.update_status(
            request_id, data['status'], data.get('admin_notes'), auth.staff_profile
        )
        return jsonify(create_response(True, "Status updated", letter_request.to_dict()))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Update status error", e)


@admin_bp.route('/requests/<int:request_id>/file', methods=['POST'])
@admin_required
def upload_request_file(auth, request_id):
    try:
        upload = request.files.get('file')
        if upload is None or not upload.filename:
            raise ValidationError("No file provided")

        letter_request = RequestService.attach_file(
            request_id, upload.filename, upload.read(), upload.mimetype
        )
        return jsonify(create_response(True, "File uploaded", letter_request.to_dict()))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Upload file error", e)


@admin_bp.route('/requests/<int:request_id>/letter', methods=['GET'])
@admin_required
def download_letter(auth, request_id):
    """Generated letter as a PDF download"""
    try:
        return letter_download_response(RequestService.generate_letter(request_id))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Generate letter error", e)


@admin_bp.route('/requests/<int:request_id>/letter', methods=['POST'])
@admin_required
def attach_generated_letter(auth, request_id):
    """Generate the letter PDF and store it as the request's file"""
    try:
        letter_request = RequestService.generate_and_attach(request_id)
        return jsonify(create_response(True, "Letter generated and uploaded", letter_request.to_dict()))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Generate letter error", e)


@admin_bp.route('/requests/<int:request_id>', methods=['DELETE'])
@admin_required
def delete_request(auth, request_id):
    try:
        RequestService.delete_request(request_id)
        return jsonify(create_response(True, "Request deleted"))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Delete request error", e)


# Letter types

@admin_bp.route('/letter-types', methods=['GET'])
@admin_required
def list_letter_types(auth):
    try:
        letter_types = LetterType.query.order_by(LetterType.code).all()
        return jsonify(create_response(True, "Letter types retrieved",
                                       [item.to_dict() for item in letter_types]))
    except Exception as e:
        return _failure("List letter types error", e)


@admin_bp.route('/letter-types', methods=['POST'])
@admin_required
def create_letter_type(auth):
    try:
        data = load_payload(LetterTypeSchema(), request.get_json(silent=True))
        if LetterType.query.filter_by(code=data['code']).first():
            raise ValidationError("Letter type code already exists")

        letter_type = LetterType(**data)
        db.session.add(letter_type)
        db.session.commit()
        return jsonify(create_response(True, "Letter type created", letter_type.to_dict())), 201
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Create letter type error", e)


@admin_bp.route('/letter-types/<int:letter_type_id>', methods=['PUT'])
@admin_required
def update_letter_type(auth, letter_type_id):
    try:
        letter_type = _get_or_404(LetterType, letter_type_id, "Letter type")
        data = load_payload(LetterTypeSchema(), request.get_json(silent=True), partial=True)

        code = data.get('code')
        if code and code != letter_type.code and LetterType.query.filter_by(code=code).first():
            raise ValidationError("Letter type code already exists")

        for key, value in data.items():
            setattr(letter_type, key, value)
        db.session.commit()
        return jsonify(create_response(True, "Letter type updated", letter_type.to_dict()))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Update letter type error", e)


@admin_bp.route('/letter-types/<int:letter_type_id>', methods=['DELETE'])
@admin_required
def delete_letter_type(auth, letter_type_id):
    """Types with requests can only be deactivated"""
    try:
        letter_type = _get_or_404(LetterType, letter_type_id, "Letter type")
        if letter_type.letter_requests:
            raise ValidationError("Letter type is used by existing requests; deactivate it instead")

        db.session.delete(letter_type)
        db.session.commit()
        return jsonify(create_response(True, "Letter type deleted"))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Delete letter type error", e)


@admin_bp.route('/letter-types/export', methods=['GET'])
@admin_required
def export_letter_types(auth):
    try:
        return csv_response(CatalogService.export_letter_types(), 'letter-types')
    except Exception as e:
        return _failure("Export letter types error", e)


@admin_bp.route('/letter-types/import', methods=['POST'])
@admin_required
def import_letter_types(auth):
    try:
        result = CatalogService.import_letter_types(_uploaded_csv())
        return jsonify(create_response(True, "Letter types imported", result))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Import letter types error", e)


# Students

def _student_query(search):
    query = Student.query
    search = (search or '').strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Student.name.ilike(pattern),
            Student.student_id.ilike(pattern),
            Student.email.ilike(pattern),
            Student.program.ilike(pattern),
        ))
    return query.order_by(Student.name)


@admin_bp.route('/students', methods=['GET'])
@admin_required
def list_students(auth):
    try:
        students = _student_query(request.args.get('search')).all()
        return jsonify(create_response(True, "Students retrieved", [item.to_dict() for item in students]))
    except Exception as e:
        return _failure("List students error", e)


@admin_bp.route('/students', methods=['POST'])
@admin_required
def create_student(auth):
    try:
        data = load_payload(StudentSchema(), request.get_json(silent=True))
        if Student.query.filter_by(student_id=data['student_id']).first():
            raise ValidationError("Student ID already exists")

        student = Student(**data)
        db.session.add(student)
        db.session.commit()
        return jsonify(create_response(True, "Student created", student.to_dict())), 201
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Create student error", e)


@admin_bp.route('/students/<int:student_pk>', methods=['PUT'])
@admin_required
def update_student(auth, student_pk):
    try:
        student = _get_or_404(Student, student_pk, "Student")
        data = load_payload(StudentSchema(), request.get_json(silent=True), partial=True)

        student_id = data.get('student_id')
        if (student_id and student_id != student.student_id
                and Student.query.filter_by(student_id=student_id).first()):
            raise ValidationError("Student ID already exists")

        for key, value in data.items():
            setattr(student, key, value)
        db.session.commit()
        return jsonify(create_response(True, "Student updated", student.to_dict()))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Update student error", e)


@admin_bp.route('/students/<int:student_pk>', methods=['DELETE'])
@admin_required
def delete_student(auth, student_pk):
    """Deletes the student together with their requests"""
    try:
        student = _get_or_404(Student, student_pk, "Student")
        db.session.delete(student)
        db.session.commit()
        return jsonify(create_response(True, "Student deleted"))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Delete student error", e)


@admin_bp.route('/students/export', methods=['GET'])
@admin_required
def export_students(auth):
    try:
        students = _student_query(request.args.get('search')).all()
        return csv_response(CatalogService.export_students(students), 'students')
    except Exception as e:
        return _failure("Export students error", e)


@admin_bp.route('/students/import', methods=['POST'])
@admin_required
def import_students(auth):
    try:
        result = CatalogService.import_students(_uploaded_csv())
        return jsonify(create_response(True, "Students imported", result))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Import students error", e)


# Study programs

def _program_query(search):
    query = StudyProgram.query
    search = (search or '').strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            StudyProgram.code.ilike(pattern),
            StudyProgram.name.ilike(pattern),
            StudyProgram.faculty.ilike(pattern),
        ))
    return query.order_by(StudyProgram.code)


@admin_bp.route('/programs', methods=['GET'])
@admin_required
def list_programs(auth):
    try:
        programs = _program_query(request.args.get('search')).all()
        return jsonify(create_response(True, "Study programs retrieved",
                                       [item.to_dict() for item in programs]))
    except Exception as e:
        return _failure("List study programs error", e)


@admin_bp.route('/programs', methods=['POST'])
@admin_required
def create_program(auth):
    try:
        data = load_payload(StudyProgramSchema(), request.get_json(silent=True))
        data['code'] = data['code'].upper()
        if StudyProgram.query.filter_by(code=data['code']).first():
            raise ValidationError("Study program code already exists")

        program = StudyProgram(**data)
        db.session.add(program)
        db.session.commit()
        return jsonify(create_response(True, "Study program created", program.to_dict())), 201
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Create study program error", e)


@admin_bp.route('/programs/<int:program_id>', methods=['PUT'])
@admin_required
def update_program(auth, program_id):
    try:
        program = _get_or_404(StudyProgram, program_id, "Study program")
        data = load_payload(StudyProgramSchema(), request.get_json(silent=True), partial=True)

        if data.get('code'):
            data['code'] = data['code'].upper()
            if data['code'] != program.code and StudyProgram.query.filter_by(code=data['code']).first():
                raise ValidationError("Study program code already exists")

        for key, value in data.items():
            setattr(program, key, value)
        db.session.commit()
        return jsonify(create_response(True, "Study program updated", program.to_dict()))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Update study program error", e)


@admin_bp.route('/programs/<int:program_id>', methods=['DELETE'])
@admin_required
def delete_program(auth, program_id):
    try:
        program = _get_or_404(StudyProgram, program_id, "Study program")
        db.session.delete(program)
        db.session.commit()
        return jsonify(create_response(True, "Study program deleted"))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Delete study program error", e)


@admin_bp.route('/programs/export', methods=['GET'])
@admin_required
def export_programs(auth):
    try:
        programs = _program_query(request.args.get('search')).all()
        return csv_response(CatalogService.export_programs(programs), 'study-programs')
    except Exception as e:
        return _failure("Export study programs error", e)


@admin_bp.route('/programs/import', methods=['POST'])
@admin_required
def import_programs(auth):
    try:
        result = CatalogService.import_programs(_uploaded_csv())
        return jsonify(create_response(True, "Study programs imported", result))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Import study programs error", e)


# Settings

@admin_bp.route('/profile', methods=['PUT'])
@admin_required
def update_profile(auth):
    """Update the signed-in admin's display name and contact email"""
    try:
        data = load_payload(ProfileSchema(), request.get_json(silent=True))
        profile = auth.staff_profile
        profile.name = data['name']
        profile.email = data['email'].lower()
        db.session.commit()
        return jsonify(create_response(True, "Profile updated", profile.to_dict()))
    except LetterPortalException as e:
        return _error(e)
    except Exception as e:
        return _failure("Update profile error", e)


# Realtime

@admin_bp.route('/changes', methods=['GET'])
@admin_required
def change_stream(auth):
    """Server-Sent Events stream of committed changes"""
    tables = [table for table in request.args.getlist('table') if table]
    unknown = [table for table in tables if table not in TRACKED_TABLES]
    if unknown:
        return jsonify(create_response(False, f"Unknown table: {', '.join(unknown)}")), 400

    feed = get_change_feed()
    if feed is None:
        return jsonify(create_response(False, "Change feed unavailable")), 503

    subscription = feed.subscribe(tables or None)
    return Response(
        stream_events(subscription),
        mimetype='text/event-stream',
        headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'}
    )
