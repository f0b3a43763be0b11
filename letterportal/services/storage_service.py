"""
Object storage service (AWS S3)
"""

from typing import Optional
from urllib.parse import unquote

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

from letterportal.utils.exceptions import StorageError


class StorageService:
    """Upload, public URL and presigned URL helpers for one bucket"""

    def __init__(self, bucket_name: str, region: str, access_key_id: Optional[str] = None,
                 secret_access_key: Optional[str] = None, public_base_url: Optional[str] = None,
                 signed_url_expires: int = 3600, client=None):
        self.bucket_name = bucket_name
        self.region = region
        self.signed_url_expires = signed_url_expires
        self.public_base_url = (public_base_url or f"https://{bucket_name}.s3.amazonaws.com").rstrip('/')
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._client = client

    @classmethod
    def from_config(cls, config) -> 'StorageService':
        return cls(
            bucket_name=config['S3_BUCKET_NAME'],
            region=config['AWS_REGION'],
            access_key_id=config.get('AWS_ACCESS_KEY_ID'),
            secret_access_key=config.get('AWS_SECRET_ACCESS_KEY'),
            public_base_url=config.get('S3_PUBLIC_BASE_URL'),
            signed_url_expires=config.get('SIGNED_URL_EXPIRES', 3600),
        )

    @property
    def client(self):
        """Lazily built S3 client"""
        if self._client is None:
            self._client = boto3.client(
                's3',
                aws_access_key_id=self._access_key_id,
                aws_secret_access_key=self._secret_access_key,
                region_name=self.region
            )
        return self._client

    def public_url(self, object_key: str) -> str:
        return f"{self.public_base_url}/{object_key}"

    def object_key_from_url(self, file_url: str) -> Optional[str]:
        """Object key for a public URL of this bucket, None for anything else"""
        prefix = f"{self.public_base_url}/"
        if not file_url or not file_url.startswith(prefix):
            return None
        key = unquote(file_url[len(prefix):].split('?', 1)[0])
        return key or None

    def upload(self, object_key: str, data: bytes, content_type: str = 'application/octet-stream') -> str:
        """
        Upload bytes, replacing any object already stored under the key

        Args:
            object_key: Destination key
            data: File content
            content_type: MIME type stored with the object

        Returns:
            Public URL of the stored object

        Raises:
            StorageError: If the upload fails
        """
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=object_key,
                Body=data,
                ContentType=content_type
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 upload error: {e}")
        return self.public_url(object_key)

    def create_signed_url(self, object_key: str, expires: Optional[int] = None) -> str:
        """
        Presigned GET URL for a private object

        Raises:
            StorageError: If the URL cannot be generated
        """
        try:
            return self.client.generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket_name, 'Key': object_key},
                ExpiresIn=expires or self.signed_url_expires
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 presigned URL error: {e}")

    def get_signed_url(self, file_url: str) -> str:
        """
        Download URL for a stored file

        URLs outside this bucket are returned as they are. When signing fails
        the original URL is returned and a warning is logged.
        """
        object_key = self.object_key_from_url(file_url)
        if object_key is None:
            return file_url

        try:
            return self.create_signed_url(object_key)
        except StorageError as e:
            current_app.logger.warning(f"Error creating signed URL: {e}")
            return file_url

    def object_exists(self, object_key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=object_key)
            return True
        except (ClientError, BotoCoreError):
            return False


def get_storage() -> StorageService:
    return current_app.extensions['storage']


def letter_file_key(reference_number: str, extension: str) -> str:
    """Deterministic object key for a request's letter file"""
    prefix = current_app.config.get('LETTER_FILE_PREFIX', 'letters')
    return f"{prefix}/{reference_number}.{extension.lower().lstrip('.')}"
