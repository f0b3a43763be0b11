"""
Configuration management for LetterPortal application
"""
import os

# Load environment variables from .env file
from dotenv import load_dotenv

load_dotenv()


def _env_flag(key: str, default: str = 'false') -> bool:
    return os.environ.get(key, default).lower() in ['true', 'on', '1']


class Config:
    """Base configuration class"""

    # Flask Configuration
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # Database Configuration
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        f"mysql+pymysql://{os.environ.get('MYSQL_USER', 'root')}:{os.environ.get('MYSQL_PASSWORD', '')}@{os.environ.get('MYSQL_HOST', 'localhost')}/{os.environ.get('MYSQL_DB', 'letterportal')}"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # AWS Configuration
    AWS_ACCESS_KEY_ID = os.environ.get('AWS_ACCESS_KEY_ID')
    AWS_SECRET_ACCESS_KEY = os.environ.get('AWS_SECRET_ACCESS_KEY')
    AWS_REGION = os.environ.get('AWS_REGION', 'ap-southeast-2')
    S3_BUCKET_NAME = os.environ.get('S3_BUCKET_NAME', 'letter-files')
    S3_PUBLIC_BASE_URL = os.environ.get('S3_PUBLIC_BASE_URL')
    SIGNED_URL_EXPIRES = 3600  # 1 hour
    LETTER_FILE_PREFIX = 'letters'

    # Email Configuration (Resend HTTP API)
    RESEND_API_KEY = os.environ.get('RESEND_API_KEY')
    RESEND_API_URL = os.environ.get('RESEND_API_URL', 'https://api.resend.com/emails')
    MAIL_FROM = os.environ.get('MAIL_FROM', 'LetterPortal <onboarding@resend.dev>')
    SITE_URL = os.environ.get('SITE_URL', 'http://localhost:5000')
    STATUS_EMAIL_ENABLED = _env_flag('STATUS_EMAIL_ENABLED', 'true')
    STATUS_EMAIL_ASYNC = _env_flag('STATUS_EMAIL_ASYNC', 'true')

    # Token Configuration
    JWT_SECRET = os.environ.get('JWT_SECRET') or SECRET_KEY
    RESET_TOKEN_EXPIRES_MIN = int(os.environ.get('RESET_TOKEN_EXPIRES_MIN', 60))

    # Letter Configuration
    REFERENCE_PREFIX = os.environ.get('REFERENCE_PREFIX', 'SUK')
    LETTER_LOCALE = os.environ.get('LETTER_LOCALE', 'en')
    LETTERHEAD = {
        'institution_name': os.environ.get('INSTITUTION_NAME', 'SAMPLE UNIVERSITY'),
        'institution_address': os.environ.get('INSTITUTION_ADDRESS', '123 Education Street'),
        'institution_city': os.environ.get('INSTITUTION_CITY', 'Education City, 12345'),
        'institution_phone': os.environ.get('INSTITUTION_PHONE', '(021) 1234567'),
        'institution_email': os.environ.get('INSTITUTION_EMAIL', 'info@sampleuniversity.ac.id'),
        'signer_name': os.environ.get('SIGNER_NAME', 'Dr. Ahmad Sulaiman, M.Pd.'),
        'signer_title': os.environ.get('SIGNER_TITLE', 'Head of Academic Administration'),
        'signer_id': os.environ.get('SIGNER_ID', '197001011995031001'),
    }

    # File Upload Configuration
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max file size
    ALLOWED_EXTENSIONS = {'pdf', 'doc', 'docx', 'png', 'jpg', 'jpeg'}

    # Application Settings
    ITEMS_PER_PAGE = 10
    DEBUG = _env_flag('FLASK_DEBUG', 'False')
    TESTING = False

    @staticmethod
    def init_app(app):
        """Initialize application with configuration"""
        pass


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///letterportal.db'


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SECRET_KEY = os.environ.get('SECRET_KEY')

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)

        # Ensure SECRET_KEY is set in production
        if not app.config['SECRET_KEY']:
            raise ValueError("SECRET_KEY environment variable must be set in production")


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    JWT_SECRET = 'test-jwt-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RESEND_API_KEY = None
    STATUS_EMAIL_ENABLED = True
    STATUS_EMAIL_ASYNC = False
    S3_BUCKET_NAME = 'test-bucket'
    S3_PUBLIC_BASE_URL = None
    REFERENCE_PREFIX = 'SUK'
    LETTER_LOCALE = 'en'
    SITE_URL = 'http://localhost:5000'


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
