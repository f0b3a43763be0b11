#!/usr/bin/env python3
"""
Environment Setup Script
Writes a starter .env for local development
"""

import os
import secrets

ENV_TEMPLATE = """# LetterPortal Environment Configuration
FLASK_ENV=development
FLASK_DEBUG=true
SECRET_KEY={secret_key}
JWT_SECRET={jwt_secret}

# Database Configuration (leave DATABASE_URL empty to use SQLite in development)
DATABASE_URL=
MYSQL_HOST=localhost
MYSQL_USER=root
MYSQL_PASSWORD=
MYSQL_DB=letterportal

# Object Storage (S3)
AWS_ACCESS_KEY_ID=
AWS_SECRET_ACCESS_KEY=
AWS_REGION=ap-southeast-2
S3_BUCKET_NAME=letter-files

# Email (Resend)
RESEND_API_KEY=
MAIL_FROM=LetterPortal <onboarding@resend.dev>
SITE_URL=http://localhost:5000

# Letters
REFERENCE_PREFIX=SUK
LETTER_LOCALE=en
INSTITUTION_NAME=SAMPLE UNIVERSITY
INSTITUTION_CITY=Education City, 12345
SIGNER_NAME=Dr. Ahmad Sulaiman, M.Pd.
SIGNER_TITLE=Head of Academic Administration
"""


def setup_environment(path: str = '.env') -> bool:
    """Create the .env file unless one exists; returns True when written"""
    print("🔧 Setting up environment for local development...")

    if os.path.exists(path):
        print(f"✅ {path} already exists, leaving it untouched")
        return False

    with open(path, 'w') as f:
        f.write(ENV_TEMPLATE.format(
            secret_key=secrets.token_hex(32),
            jwt_secret=secrets.token_hex(32),
        ))
    print(f"✅ {path} created")
    return True


if __name__ == "__main__":
    setup_environment()
    print("\n✅ Environment setup complete!")
    print("\nNext steps:")
    print("1. Fill in the S3 and Resend credentials in .env")
    print("2. Run: python health_check.py")
    print("3. Run: python seed_data.py")
    print("4. Run: python main.py")
