"""
LetterPortal - Test Configuration and Fixtures
"""

import pytest
from botocore.exceptions import ClientError

from letterportal import create_app
from letterportal.models import db, LetterType, StudyProgram
from letterportal.services.storage_service import StorageService

STUDENT_PASSWORD = 'student-pass'
ADMIN_PASSWORD = 'admin-pass'


class FakeS3Client:
    """In-memory stand-in for the boto3 S3 client"""

    def __init__(self, fail_presign=False):
        self.objects = {}
        self.fail_presign = fail_presign

    def put_object(self, Bucket, Key, Body, ContentType):
        self.objects[(Bucket, Key)] = {'body': Body, 'content_type': ContentType}
        return {'ETag': '"fake"'}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        if self.fail_presign:
            raise ClientError({'Error': {'Code': '500', 'Message': 'signing failed'}}, 'GeneratePresignedUrl')
        return f"https://{Params['Bucket']}.s3.amazonaws.com/{Params['Key']}?X-Amz-Expires={ExpiresIn}&X-Amz-Signature=fake"

    def head_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError({'Error': {'Code': '404', 'Message': 'Not Found'}}, 'HeadObject')
        return {}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=''):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def app(s3_client):
    """Application with an in-memory database and fake object storage"""
    app = create_app('testing')
    app.extensions['storage'] = StorageService(
        bucket_name=app.config['S3_BUCKET_NAME'],
        region=app.config['AWS_REGION'],
        client=s3_client
    )
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture Resend API calls instead of sending them"""
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({'url': url, 'json': json, 'headers': headers})
        return FakeResponse(200, {'id': f"email-{len(calls)}"})

    monkeypatch.setattr('letterportal.services.email_service.requests.post', fake_post)
    return calls


def make_letter_type(app, code='SKAK', name='Active Student Certificate', is_active=True,
                     addressee='To Whom It May Concern', body_template=None):
    with app.app_context():
        letter_type = LetterType(code=code, name=name, is_active=is_active,
                                 addressee=addressee, body_template=body_template)
        db.session.add(letter_type)
        db.session.commit()
        return letter_type.id


def make_program(app, code='IF', name='Informatics', faculty='Engineering', is_active=True):
    with app.app_context():
        program = StudyProgram(code=code, name=name, faculty=faculty, is_active=is_active)
        db.session.add(program)
        db.session.commit()
        return program.id


@pytest.fixture
def letter_type_id(app):
    return make_letter_type(app)


def submission_payload(letter_type_id, **overrides):
    payload = {
        'name': 'Siti Rahma',
        'student_id': '2021001234',
        'program': 'Informatics',
        'email': 'siti@example.com',
        'phone': '081234567890',
        'letter_type_id': letter_type_id,
        'purpose': 'Scholarship application for next semester',
    }
    payload.update(overrides)
    return payload


def submit(client, letter_type_id, **overrides):
    return client.post('/api/requests', json=submission_payload(letter_type_id, **overrides))


def register_admin(client, email='admin@example.com', name='Admin User'):
    return client.post('/api/auth/admin/register', json={
        'name': name,
        'email': email,
        'password': ADMIN_PASSWORD,
        'confirm_password': ADMIN_PASSWORD,
    })


def register_student(client, email='siti@example.com', student_id='2021001234'):
    return client.post('/api/auth/student/register', json={
        'name': 'Siti Rahma',
        'student_id': student_id,
        'program': 'Informatics',
        'email': email,
        'phone': '081234567890',
        'password': STUDENT_PASSWORD,
        'confirm_password': STUDENT_PASSWORD,
    })


@pytest.fixture
def admin_client(app):
    """Test client signed in to the admin portal"""
    client = app.test_client()
    assert register_admin(client).status_code == 201
    response = client.post('/api/auth/admin/login', json={
        'email': 'admin@example.com', 'password': ADMIN_PASSWORD
    })
    assert response.status_code == 200
    return client
