import pytest

from conftest import FakeS3Client

from letterportal.services.storage_service import StorageService, letter_file_key
from letterportal.utils.exceptions import StorageError


@pytest.fixture
def storage():
    return StorageService('letter-files', 'ap-southeast-2', client=FakeS3Client())


def test_upload_returns_public_url_and_overwrites(storage):
    first = storage.upload('letters/SUK-202501-0001.pdf', b'one', 'application/pdf')
    storage.upload('letters/SUK-202501-0001.pdf', b'two', 'application/pdf')

    assert first == 'https://letter-files.s3.amazonaws.com/letters/SUK-202501-0001.pdf'
    assert storage.client.objects[('letter-files', 'letters/SUK-202501-0001.pdf')]['body'] == b'two'
    assert storage.object_exists('letters/SUK-202501-0001.pdf')
    assert not storage.object_exists('letters/missing.pdf')


def test_signed_url_for_bucket_url(storage):
    signed = storage.get_signed_url('https://letter-files.s3.amazonaws.com/letters/SUK-202501-0001.pdf')
    assert signed.startswith('https://letter-files.s3.amazonaws.com/letters/SUK-202501-0001.pdf?X-Amz-Expires=3600')


def test_foreign_url_returned_unchanged(storage):
    url = 'https://example.org/files/letter.pdf'
    assert storage.get_signed_url(url) == url


def test_signing_failure_falls_back_to_original(app_ctx):
    storage = StorageService('letter-files', 'ap-southeast-2', client=FakeS3Client(fail_presign=True))
    url = 'https://letter-files.s3.amazonaws.com/letters/SUK-202501-0001.pdf'

    assert storage.get_signed_url(url) == url
    with pytest.raises(StorageError):
        storage.create_signed_url('letters/SUK-202501-0001.pdf')


def test_custom_public_base_url():
    storage = StorageService('letter-files', 'ap-southeast-2', public_base_url='https://cdn.example.org/',
                             client=FakeS3Client())

    assert storage.public_url('letters/a.pdf') == 'https://cdn.example.org/letters/a.pdf'
    assert storage.object_key_from_url('https://cdn.example.org/letters/a%20b.pdf?x=1') == 'letters/a b.pdf'


def test_letter_file_key(app_ctx):
    assert letter_file_key('SUK-202501-0001', '.PDF') == 'letters/SUK-202501-0001.pdf'
