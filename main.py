"""
Main application entry point
"""

import os
import sys

from sqlalchemy import text

from letterportal import create_app
from letterportal.models import db
from letterportal.utils import log_info, log_error


def main():
    """Main application entry point"""
    print("=" * 50)
    print("🚀 Starting LetterPortal")
    print("=" * 50)

    try:
        app = create_app()

        with app.app_context():
            try:
                db.session.execute(text('SELECT 1'))
                log_info("✅ Database connection available")
            except Exception as e:
                log_error("❌ Database connection error", e)
                print("💡 Try running: python health_check.py")
                return False

        port = int(os.environ.get('PORT', 5000))
        print(f"🌐 Starting server on http://localhost:{port}")
        print(f"🔧 Debug mode: {'ON' if app.debug else 'OFF'}")

        # Each admin change stream holds a worker thread
        app.run(host='0.0.0.0', port=port, debug=app.debug, threaded=True)
        return True

    except Exception as e:
        print(f"❌ Failed to start application: {e}")
        return False


if __name__ == '__main__':
    success = main()
    if not success:
        sys.exit(1)
