"""
Email service for sending notifications
"""

from typing import Any, Dict, Optional

import requests
from flask import current_app

from letterportal.templates.email_templates import get_password_reset_email_template
from letterportal.utils.exceptions import EmailError


class EmailService:
    """Email service class backed by the Resend HTTP API"""

    @staticmethod
    def is_configured() -> bool:
        return bool(current_app.config.get('RESEND_API_KEY'))

    @staticmethod
    def send_password_reset_email(to_email: str, full_name: str, reset_url: str) -> Dict[str, Any]:
        """
        Send password reset link

        Args:
            to_email: Recipient email
            full_name: Recipient full name
            reset_url: Link carrying the reset token

        Returns:
            Provider response
        """
        expires = current_app.config.get('RESET_TOKEN_EXPIRES_MIN', 60)
        html_content = get_password_reset_email_template(full_name, reset_url, expires)
        return EmailService.send_email_html(to_email, "[LetterPortal] Reset your password", html_content)

    @staticmethod
    def send_email_html(to_email: str, subject: str, html_content: str,
                        sender: Optional[str] = None) -> Dict[str, Any]:
        """
        Send HTML email

        Raises:
            EmailError: If the service is not configured or the provider rejects the message
        """
        api_key = current_app.config.get('RESEND_API_KEY')
        if not api_key:
            raise EmailError("Email service not configured")

        payload = {
            'from': sender or current_app.config.get('MAIL_FROM'),
            'to': [to_email],
            'subject': subject,
            'html': html_content,
        }

        try:
            response = requests.post(
                current_app.config.get('RESEND_API_URL', 'https://api.resend.com/emails'),
                json=payload,
                headers={
                    'Authorization': f"Bearer {api_key}",
                    'Content-Type': 'application/json',
                },
                timeout=15
            )
        except requests.RequestException as e:
            raise EmailError(f"Failed to send email: {str(e)}")

        if not response.ok:
            raise EmailError(f"Email provider rejected message ({response.status_code}): {response.text}")

        return response.json()
