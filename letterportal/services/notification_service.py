"""
Status change notification

Invoked with {requestId, oldStatus, newStatus}, either through the
/functions/send-status-email endpoint or by the status-change trigger after a
commit. Email problems never fail the caller: they are logged and reported
as a warning.
"""

import threading
from typing import Any, Dict, Optional

from flask import Flask, current_app

from letterportal.models import db, LetterRequest
from letterportal.services.email_service import EmailService
from letterportal.templates.email_templates import STATUS_MESSAGES, get_status_email_template
from letterportal.utils.exceptions import EmailError, NotFoundError
from letterportal.utils.workflow import RequestStatus


class NotificationService:

    @staticmethod
    def tracking_url(reference_number: str) -> str:
        site_url = current_app.config.get('SITE_URL', '').rstrip('/')
        return f"{site_url}/track?reference={reference_number}"

    @staticmethod
    def send_status_email(request_id: int, old_status: Optional[str], new_status: str) -> Dict[str, Any]:
        """
        Email the student about a status change

        Returns:
            Result dictionary; `success` is True unless the request is missing

        Raises:
            NotFoundError: If the request does not exist
        """
        current_app.logger.info(f"Status change: {old_status} -> {new_status} for request {request_id}")

        letter_request = db.session.get(LetterRequest, request_id)
        if letter_request is None:
            raise NotFoundError("Letter request not found")

        student = letter_request.student
        email = student.email if student else None
        if not email:
            current_app.logger.info("No email found for student")
            return {'success': True, 'message': 'No email to send'}

        status_info = STATUS_MESSAGES.get(new_status)
        if not status_info:
            current_app.logger.info(f"No message configured for status: {new_status}")
            return {'success': True, 'message': 'Status not configured for email'}

        if not EmailService.is_configured():
            current_app.logger.info("RESEND_API_KEY not configured, skipping email")
            return {
                'success': True,
                'message': 'Email service not configured',
                'would_send_to': email,
                'status': new_status,
            }

        download_url = None
        if new_status == RequestStatus.COMPLETED.value:
            download_url = NotificationService.tracking_url(letter_request.reference_number)

        html_content = get_status_email_template(
            student_name=student.name,
            message=status_info['message'],
            reference_number=letter_request.reference_number,
            letter_type_name=letter_request.letter_type.name if letter_request.letter_type else None,
            status=new_status,
            download_url=download_url,
        )

        try:
            result = EmailService.send_email_html(email, f"[LetterPortal] {status_info['subject']}", html_content)
        except EmailError as e:
            current_app.logger.warning(f"Email sending failed: {e}")
            return {
                'success': True,
                'message': 'Email not sent',
                'warning': str(e),
                'would_send_to': email,
            }

        current_app.logger.info(f"Email sent successfully: {result}")
        return {'success': True, 'email_id': result.get('id')}


def trigger_status_email(app: Flask, request_id: int, old_status: Optional[str], new_status: str) -> None:
    """
    Status-change trigger

    Runs in a fresh application context (its own database session), on a
    background thread unless STATUS_EMAIL_ASYNC is off.
    """
    def run():
        with app.app_context():
            try:
                NotificationService.send_status_email(request_id, old_status, new_status)
            except Exception as e:
                app.logger.error(f"Status email trigger failed for request {request_id}: {e}")

    if app.config.get('STATUS_EMAIL_ASYNC', True):
        threading.Thread(target=run, name=f"status-email-{request_id}", daemon=True).start()
    else:
        run()
