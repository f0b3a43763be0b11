"""
Routes package initialization
"""

from letterportal.routes.auth_routes import auth_bp
from letterportal.routes.student_routes import student_bp
from letterportal.routes.admin_routes import admin_bp
from letterportal.routes.function_routes import function_bp

__all__ = ['auth_bp', 'student_bp', 'admin_bp', 'function_bp']
