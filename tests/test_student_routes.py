from conftest import make_letter_type, make_program, register_student, STUDENT_PASSWORD, submit

from letterportal.models import db, Student
from letterportal.services.auth_service import AuthService


def test_letter_types_lists_only_active(app, client):
    make_letter_type(app, code='SKAK', name='Active Student Certificate')
    make_letter_type(app, code='OLD', name='Archived Letter', is_active=False)

    response = client.get('/api/letter-types')

    assert response.status_code == 200
    assert [item['code'] for item in response.get_json()['data']] == ['SKAK']


def test_programs_lists_active_by_code(app, client):
    make_program(app, code='SI', name='Information Systems')
    make_program(app, code='IF', name='Informatics')
    make_program(app, code='XX', name='Closed Program', is_active=False)

    response = client.get('/api/programs')

    assert [item['code'] for item in response.get_json()['data']] == ['IF', 'SI']


def test_submit_returns_reference_number(client, letter_type_id):
    response = submit(client, letter_type_id)

    assert response.status_code == 201
    body = response.get_json()
    assert body['ok'] is True
    assert body['reference_number'].startswith('SUK-')
    assert body['data']['status'] == 'Submitted'


def test_submit_then_track(client, letter_type_id):
    reference = submit(client, letter_type_id).get_json()['reference_number']

    response = client.get(f'/api/track/{reference.lower()}')

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['reference_number'] == reference
    assert data['student']['name'] == 'Siti Rahma'
    assert data['letter_type']['code'] == 'SKAK'
    assert data['workflow']['index'] == 0
    assert data['workflow']['progress'] == 0
    assert data['workflow']['next_status'] == 'Approved'
    assert data['download_url'] is None


def test_track_unknown_reference(client):
    response = client.get('/api/track/SUK-000000-9999')

    assert response.status_code == 404
    body = response.get_json()
    assert body['found'] is False
    assert body['ok'] is False


def test_resubmission_updates_student(app, client, letter_type_id):
    submit(client, letter_type_id)
    submit(client, letter_type_id, name='Siti Rahmawati', phone='089999999999')

    with app.app_context():
        students = Student.query.filter_by(student_id='2021001234').all()
        assert len(students) == 1
        assert students[0].name == 'Siti Rahmawati'
        assert students[0].phone == '089999999999'
        assert len(students[0].letter_requests) == 2


def test_submit_rejects_inactive_letter_type(app, client):
    inactive_id = make_letter_type(app, code='OLD', name='Archived Letter', is_active=False)

    response = submit(client, inactive_id)

    assert response.status_code == 400
    with app.app_context():
        assert Student.query.count() == 0


def test_submit_validates_payload(client, letter_type_id):
    response = submit(client, letter_type_id, purpose='short', email='not-an-email')

    assert response.status_code == 400
    message = response.get_json()['message']
    assert 'purpose' in message
    assert 'email' in message


def test_submit_without_body(client):
    response = client.post('/api/requests', json={})
    assert response.status_code == 400


def test_history_requires_login(client):
    assert client.get('/api/student/requests').status_code == 401


def test_history_for_registered_student(app, client, letter_type_id):
    submit(client, letter_type_id)
    assert register_student(client).status_code == 201
    client.post('/api/auth/student/login', json={'email': 'siti@example.com', 'password': STUDENT_PASSWORD})
    submit(client, letter_type_id, purpose='Internship application at a bank')

    response = client.get('/api/student/requests')

    assert response.status_code == 200
    purposes = [item['purpose'] for item in response.get_json()['data']]
    assert sorted(purposes) == ['Internship application at a bank', 'Scholarship application for next semester']


def test_history_empty_without_linked_student(app, client):
    with app.app_context():
        AuthService.register_admin('Staff Member', 'staff@example.com', 'secret-pass')
        db.session.remove()
    client.post('/api/auth/student/login', json={'email': 'staff@example.com', 'password': 'secret-pass'})

    response = client.get('/api/student/requests')

    assert response.status_code == 200
    assert response.get_json()['data'] == []
