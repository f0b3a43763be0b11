import jwt

from conftest import ADMIN_PASSWORD, STUDENT_PASSWORD, register_admin, register_student, submit

from letterportal.models import db, Student, UserAccount
from letterportal.services.auth_service import AuthService, auth_state_changed


def _login_student(client, password=STUDENT_PASSWORD):
    return client.post('/api/auth/student/login', json={'email': 'siti@example.com', 'password': password})


def test_register_and_login_student(client):
    assert register_student(client).status_code == 201

    response = _login_student(client)

    assert response.status_code == 200
    session = client.get('/api/auth/session').get_json()['data']
    assert session['authenticated'] is True
    assert session['portal'] == 'student'
    assert session['student']['student_id'] == '2021001234'


def test_register_links_existing_student(app, client, letter_type_id):
    submit(client, letter_type_id)

    assert register_student(client).status_code == 201

    with app.app_context():
        students = Student.query.all()
        assert len(students) == 1
        assert students[0].user_id == UserAccount.query.one().id


def test_register_rejects_duplicates(client):
    register_student(client)

    same_email = register_student(client, student_id='2021009999')
    same_student = register_student(client, email='other@example.com')

    assert same_email.status_code == 400
    assert same_email.get_json()['message'] == 'Email already registered'
    assert same_student.status_code == 400
    assert same_student.get_json()['message'] == 'Student ID already registered'


def test_register_requires_matching_passwords(client):
    response = client.post('/api/auth/student/register', json={
        'name': 'Siti Rahma', 'student_id': '2021001234', 'program': 'Informatics',
        'email': 'siti@example.com', 'phone': '081234567890',
        'password': 'secret1', 'confirm_password': 'secret2',
    })

    assert response.status_code == 400
    assert 'confirm_password' in response.get_json()['message']


def test_wrong_password(client):
    register_student(client)
    assert _login_student(client, 'wrong-password').status_code == 401


def test_admin_login_requires_staff_profile(client):
    register_student(client)

    response = client.post('/api/auth/admin/login', json={'email': 'siti@example.com', 'password': STUDENT_PASSWORD})

    assert response.status_code == 403


def test_inactive_admin_cannot_log_in(app, client):
    register_admin(client)
    with app.app_context():
        account = UserAccount.query.filter_by(email='admin@example.com').one()
        account.staff_profile.is_active = False
        db.session.commit()

    response = client.post('/api/auth/admin/login', json={'email': 'admin@example.com', 'password': ADMIN_PASSWORD})

    assert response.status_code == 403


def test_logout_clears_session(admin_client):
    assert admin_client.post('/api/auth/logout').status_code == 200
    assert admin_client.get('/api/auth/session').get_json()['data']['authenticated'] is False
    assert admin_client.get('/api/admin/dashboard').status_code == 401


def test_sign_in_and_out_emit_signal(app, client):
    events = []

    def listener(sender, event, auth):
        events.append(event)

    register_student(client)
    with auth_state_changed.connected_to(listener, app):
        _login_student(client)
        client.post('/api/auth/logout')

    assert events == ['SIGNED_IN', 'SIGNED_OUT']


def test_forgot_password_unknown_email_still_ok(client):
    response = client.post('/api/auth/forgot-password', json={'email': 'nobody@example.com'})
    assert response.status_code == 200


def test_forgot_password_sends_reset_link(app, client, sent_emails):
    app.config['RESEND_API_KEY'] = 're_test_key'
    register_student(client)

    client.post('/api/auth/forgot-password', json={'email': 'siti@example.com'})

    assert len(sent_emails) == 1
    assert 'http://localhost:5000/reset-password?token=' in sent_emails[0]['json']['html']


def test_reset_password_token_works_once(app, client):
    register_student(client)
    with app.app_context():
        token = AuthService.create_reset_token(UserAccount.query.one())

    first = client.post('/api/auth/reset-password', json={
        'token': token, 'password': 'new-secret', 'confirm_password': 'new-secret'
    })
    second = client.post('/api/auth/reset-password', json={
        'token': token, 'password': 'other-secret', 'confirm_password': 'other-secret'
    })

    assert first.status_code == 200
    assert second.status_code == 400
    assert _login_student(client, 'new-secret').status_code == 200


def test_reset_password_rejects_forged_token(client):
    register_student(client)
    forged = jwt.encode({'uid': 1, 'purpose': 'password_reset', 'fp': 'x'}, 'wrong-secret', algorithm='HS256')

    response = client.post('/api/auth/reset-password', json={'token': forged, 'password': 'new-secret'})

    assert response.status_code == 400


def test_change_password(client):
    register_student(client)
    _login_student(client)

    wrong = client.post('/api/auth/change-password', json={
        'current_password': 'not-it', 'new_password': 'changed-pass'
    })
    right = client.post('/api/auth/change-password', json={
        'current_password': STUDENT_PASSWORD, 'new_password': 'changed-pass', 'confirm_password': 'changed-pass'
    })

    assert wrong.status_code == 401
    assert right.status_code == 200
    client.post('/api/auth/logout')
    assert _login_student(client, 'changed-pass').status_code == 200
