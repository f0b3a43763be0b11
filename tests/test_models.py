"""Reference numbers and status timestamps maintained by the model events"""
import re
from datetime import datetime

import pytest

from conftest import submission_payload

from letterportal.models import db, LetterRequest, LetterType, Student
from letterportal.models.events import generate_reference_number
from letterportal.services.request_service import RequestService
from letterportal.utils.exceptions import DatabaseError, ValidationError

REFERENCE_PATTERN = re.compile(r'^SUK-\d{6}-\d{4}$')


def _student_and_type():
    student = Student(name='Budi Santoso', student_id='2020000001', program='Informatics',
                      email='budi@example.com', phone='081200000000')
    letter_type = LetterType(code='SKAK', name='Active Student Certificate', is_active=True)
    db.session.add_all([student, letter_type])
    db.session.flush()
    return student, letter_type


def test_reference_number_assigned_on_insert(app_ctx):
    student, letter_type = _student_and_type()
    letter_request = LetterRequest(student=student, letter_type=letter_type, purpose='Scholarship application')
    db.session.add(letter_request)
    db.session.commit()

    assert REFERENCE_PATTERN.match(letter_request.reference_number)
    assert letter_request.reference_number.startswith(f"SUK-{datetime.utcnow().strftime('%Y%m')}-")
    assert letter_request.status == 'Submitted'
    assert letter_request.submitted_at is not None
    assert letter_request.approved_at is None


def test_reference_numbers_unique_within_one_flush(app_ctx):
    student, letter_type = _student_and_type()
    requests = [
        LetterRequest(student=student, letter_type=letter_type, purpose=f'Purpose number {index}')
        for index in range(3)
    ]
    db.session.add_all(requests)
    db.session.commit()

    references = [item.reference_number for item in requests]
    assert len(set(references)) == 3
    assert sorted(int(ref.rsplit('-', 1)[1]) for ref in references) == [1, 2, 3]


def test_sequence_continues_from_latest_and_restarts_monthly(app_ctx):
    student, letter_type = _student_and_type()
    db.session.add(LetterRequest(student=student, letter_type=letter_type, purpose='Imported request',
                                 reference_number='SUK-202501-0007'))
    db.session.commit()

    assert generate_reference_number(db.session, datetime(2025, 1, 20), {}) == 'SUK-202501-0008'
    assert generate_reference_number(db.session, datetime(2025, 2, 1), {}) == 'SUK-202502-0001'


def test_sequence_compares_suffix_numerically(app_ctx):
    student, letter_type = _student_and_type()
    for reference in ('SUK-202501-9999', 'SUK-202501-10000'):
        db.session.add(LetterRequest(student=student, letter_type=letter_type, purpose='Imported request',
                                     reference_number=reference))
    db.session.commit()

    assert generate_reference_number(db.session, datetime(2025, 1, 20), {}) == 'SUK-202501-10001'


def test_reference_prefix_from_config(app_ctx):
    app_ctx.config['REFERENCE_PREFIX'] = 'LTR'
    assert generate_reference_number(db.session, datetime(2025, 3, 1), {}) == 'LTR-202503-0001'


def test_reference_number_is_immutable(app_ctx):
    student, letter_type = _student_and_type()
    letter_request = LetterRequest(student=student, letter_type=letter_type, purpose='Scholarship application')
    db.session.add(letter_request)
    db.session.commit()

    letter_request.reference_number = 'SUK-199901-0001'
    with pytest.raises(ValidationError):
        db.session.commit()
    db.session.rollback()


def test_jump_to_completed_stamps_every_timestamp(app_ctx):
    student, letter_type = _student_and_type()
    letter_request = LetterRequest(student=student, letter_type=letter_type, purpose='Scholarship application')
    db.session.add(letter_request)
    db.session.commit()

    letter_request.status = 'Completed'
    db.session.commit()

    assert letter_request.approved_at is not None
    assert letter_request.processing_started_at is not None
    assert letter_request.completed_at is not None


def test_existing_timestamps_are_kept(app_ctx):
    student, letter_type = _student_and_type()
    letter_request = LetterRequest(student=student, letter_type=letter_type, purpose='Scholarship application')
    db.session.add(letter_request)
    db.session.commit()

    letter_request.status = 'Approved'
    db.session.commit()
    approved_at = letter_request.approved_at

    letter_request.status = 'Processing'
    db.session.commit()

    assert letter_request.approved_at == approved_at
    assert letter_request.processing_started_at >= approved_at
    assert letter_request.completed_at is None


def test_submission_retries_when_reference_taken_concurrently(app_ctx, letter_type_id, monkeypatch):
    first = RequestService.submit_request(submission_payload(letter_type_id))
    stale = [first.reference_number]

    def stale_then_fresh(session, now, taken, prefix=None):
        # The first read races with the submission above and sees its number
        if stale:
            return stale.pop()
        return generate_reference_number(session, now, taken, prefix)

    monkeypatch.setattr('letterportal.models.events.generate_reference_number', stale_then_fresh)
    second = RequestService.submit_request(submission_payload(letter_type_id, student_id='2021009999'))

    assert second.reference_number != first.reference_number
    assert int(second.reference_number.rsplit('-', 1)[1]) == 2
    assert LetterRequest.query.count() == 2
    assert Student.query.count() == 2


def test_reference_collision_gives_up_after_retries(app_ctx, letter_type_id, monkeypatch):
    monkeypatch.setattr('letterportal.models.events.generate_reference_number',
                        lambda *args, **kwargs: 'SUK-202501-0001')
    RequestService.submit_request(submission_payload(letter_type_id))

    with pytest.raises(DatabaseError):
        RequestService.submit_request(submission_payload(letter_type_id, student_id='2021009999'))

    assert LetterRequest.query.count() == 1


def test_to_dict_formats_timestamps(app_ctx):
    student, letter_type = _student_and_type()
    letter_request = LetterRequest(student=student, letter_type=letter_type, purpose='Scholarship application')
    db.session.add(letter_request)
    db.session.commit()

    data = letter_request.to_dict()

    assert data['submitted_at'] == letter_request.submitted_at.isoformat()
    assert data['completed_at'] is None
