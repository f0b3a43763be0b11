from html import escape
from typing import Optional

STATUS_MESSAGES = {
    'Approved': {
        'subject': 'Your Letter Request Has Been Approved',
        'message': 'Your letter request has been approved and will be processed shortly.',
    },
    'Processing': {
        'subject': 'Your Letter Request Is Being Processed',
        'message': 'Your letter is currently being prepared.',
    },
    'Completed': {
        'subject': 'Your Letter Is Ready',
        'message': 'Your letter is complete and ready to download. Open the tracking page to download it.',
    },
}

STATUS_BADGE_COLORS = {
    'Approved': ('#dbeafe', '#1e40af'),
    'Processing': ('#e0e7ff', '#4338ca'),
    'Completed': ('#dcfce7', '#166534'),
}


def get_status_email_template(student_name: str, message: str, reference_number: str,
                              letter_type_name: str, status: str,
                              download_url: Optional[str] = None) -> str:
    """
    HTML body for a status change notification.
    The download button is only rendered when a tracking URL is given.
    """
    background, color = STATUS_BADGE_COLORS.get(status, ('#f1f5f9', '#334155'))
    download_block = ""
    if download_url:
        download_block = f"""
                                <tr>
                                    <td align="center" style="padding-bottom: 25px;">
                                        <a href="{escape(download_url, quote=True)}" style="display: inline-block; background: #6366f1; color: #ffffff; padding: 12px 24px; text-decoration: none; border-radius: 8px; font-weight: bold;">
                                            Download Letter
                                        </a>
                                    </td>
                                </tr>"""

    return f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(status)}</title>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, Helvetica, sans-serif; background-color: #f4f6fa; color: #333333;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: #f4f6fa;">
        <tr>
            <td align="center" style="padding: 20px 0;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="max-width: 600px; width: 100%; background-color: #ffffff; border-radius: 12px; overflow: hidden;">
                    <tr>
                        <td align="center" style="padding: 30px 20px; background: linear-gradient(135deg, #6366f1 0%, #8b5cf6 100%); color: #ffffff;">
                            <h1 style="margin: 0;">LetterPortal</h1>
                            <p style="margin: 10px 0 0;">Campus Letter Service</p>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 30px 40px;">
                            <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%">
                                <tr>
                                    <td style="padding-bottom: 20px;">
                                        <h2 style="margin: 0; font-size: 22px; color: #2c3e50;">Hello, {escape(student_name or '')}!</h2>
                                    </td>
                                </tr>
                                <tr>
                                    <td style="padding-bottom: 20px; font-size: 16px; line-height: 1.5;">{escape(message)}</td>
                                </tr>
                                <tr>
                                    <td style="padding: 20px; background-color: #f8fafc; border-radius: 8px;">
                                        <p style="margin: 0 0 8px 0;"><strong>Reference Number:</strong> {escape(reference_number or '')}</p>
                                        <p style="margin: 0 0 8px 0;"><strong>Letter Type:</strong> {escape(letter_type_name or '-')}</p>
                                        <p style="margin: 0;"><strong>Status:</strong>
                                            <span style="display: inline-block; padding: 6px 14px; border-radius: 20px; font-weight: bold; background: {background}; color: {color};">{escape(status)}</span>
                                        </p>
                                    </td>
                                </tr>
                                <tr><td style="height: 20px;"></td></tr>{download_block}
                            </table>
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding: 20px 40px 30px 40px; background-color: #f8f9fa; border-top: 1px solid #e9ecef; font-size: 12px; color: #64748b;">
                            <p style="margin: 0 0 6px 0;">This email was sent automatically by LetterPortal.</p>
                            <p style="margin: 0;">If you did not submit this request, please ignore this email.</p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>
"""


def get_password_reset_email_template(full_name: str, reset_url: str, expires_minutes: int) -> str:
    """HTML body for a password reset link"""
    return f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Reset your password</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2 style="color: #6366f1;">LetterPortal Password Reset</h2>
        <p>Hello {escape(full_name or '')},</p>
        <p>We received a request to reset your password. Use the button below to choose a new one.</p>
        <p style="text-align: center; margin: 30px 0;">
            <a href="{escape(reset_url, quote=True)}" style="display: inline-block; background: #6366f1; color: #ffffff; padding: 12px 24px; text-decoration: none; border-radius: 8px; font-weight: bold;">Reset Password</a>
        </p>
        <p>This link will expire in {expires_minutes} minutes.</p>
        <p>If you didn't request this, please ignore this email.</p>
        <hr style="margin: 30px 0; border: none; border-top: 1px solid #e5e7eb;">
        <p style="color: #6b7280; font-size: 14px;">This is an automated message from LetterPortal.</p>
    </div>
</body>
</html>
"""
