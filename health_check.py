#!/usr/bin/env python3
"""
LetterPortal Health Check Script
Diagnoses common setup problems before starting the server
"""

import sys
from importlib import import_module
from pathlib import Path

REQUIRED_PACKAGES = [
    ('flask', 'flask'),
    ('flask-sqlalchemy', 'flask_sqlalchemy'),
    ('flask-cors', 'flask_cors'),
    ('pymysql', 'pymysql'),
    ('werkzeug', 'werkzeug'),
    ('requests', 'requests'),
    ('PyJWT', 'jwt'),
    ('boto3', 'boto3'),
    ('marshmallow', 'marshmallow'),
    ('python-dotenv', 'dotenv'),
    ('blinker', 'blinker'),
    ('reportlab', 'reportlab'),
]

REQUIRED_FILES = [
    'main.py', 'config.py', 'pyproject.toml',
    'letterportal/__init__.py', 'letterportal/models/__init__.py',
    'letterportal/routes/__init__.py', 'letterportal/services/__init__.py',
    'letterportal/utils/__init__.py', 'letterportal/templates/__init__.py',
]

SETTINGS_TO_REPORT = ['S3_BUCKET_NAME', 'RESEND_API_KEY', 'SITE_URL', 'REFERENCE_PREFIX']


def check_python_version():
    """Check if Python version is compatible"""
    version = sys.version_info
    if version < (3, 9):
        print("❌ Python 3.9+ required. Current version:", f"{version.major}.{version.minor}")
        return False
    print(f"✅ Python version: {version.major}.{version.minor}.{version.micro}")
    return True


def check_dependencies():
    """Check if all required dependencies are installed"""
    missing_packages = []

    for package_name, import_name in REQUIRED_PACKAGES:
        try:
            import_module(import_name)
        except ImportError:
            missing_packages.append(package_name)

    if missing_packages:
        print(f"❌ Missing packages: {', '.join(missing_packages)}")
        print("💡 Run: pip install -e .")
        return False

    print("✅ All dependencies installed")
    return True


def check_file_structure():
    missing_files = [path for path in REQUIRED_FILES if not Path(path).exists()]

    if missing_files:
        print(f"❌ Missing files: {', '.join(missing_files)}")
        return False

    print("✅ Project structure is correct")
    return True


def check_environment():
    """Check environment configuration"""
    if not Path('.env').exists():
        print("❌ .env file not found")
        print("💡 Run: python setup_environment.py")
        return False

    from config import Config
    for key in SETTINGS_TO_REPORT:
        state = 'set' if getattr(Config, key, None) else 'not set'
        print(f"   {key}: {state}")
    if not Config.RESEND_API_KEY:
        print("⚠️ RESEND_API_KEY is not set; status emails will be skipped")

    print("✅ Environment file exists")
    return True


def check_database_connection():
    """Test database connection"""
    try:
        from letterportal import create_app
        from letterportal.models import db
        from sqlalchemy import text

        app = create_app()
        with app.app_context():
            db.session.execute(text('SELECT 1'))
            print("✅ Database connection successful")
            return True
    except Exception as e:
        print(f"❌ Database connection failed: {e}")
        return False


def run_health_check():
    """Run complete health check"""
    print("🔍 Running LetterPortal Health Check...")
    print("=" * 50)

    checks = [
        ("Python Version", check_python_version),
        ("Dependencies", check_dependencies),
        ("File Structure", check_file_structure),
        ("Environment", check_environment),
        ("Database Connection", check_database_connection)
    ]

    results = []
    for name, check_func in checks:
        print(f"\n🔍 Checking {name}...")
        try:
            result = check_func()
            results.append((name, result))
        except Exception as e:
            print(f"❌ Error checking {name}: {e}")
            results.append((name, False))

    print("\n" + "=" * 50)
    print("📊 Health Check Results:")
    print("=" * 50)

    all_passed = True
    for name, result in results:
        print(f"{name}: {'✅ PASS' if result else '❌ FAIL'}")
        all_passed = all_passed and result

    if all_passed:
        print("\n🎉 All checks passed!")
        print("💡 Seed the catalogs with: python seed_data.py")
        print("💡 Start the server with: python main.py")
    else:
        print("\n⚠️ Some checks failed. Please fix the issues above.")

    return all_passed


if __name__ == '__main__':
    success = run_health_check()
    sys.exit(0 if success else 1)
