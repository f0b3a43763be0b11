"""
Server function endpoints
"""

from flask import Blueprint, request, jsonify
from letterportal.services.notification_service import NotificationService
from letterportal.utils import log_error

function_bp = Blueprint('functions', __name__)


@function_bp.route('/send-status-email', methods=['POST', 'OPTIONS'])
def send_status_email():
    """
    Notify a student about a status change

    Body: {"requestId": ..., "oldStatus": ..., "newStatus": ...}
    """
    if request.method == 'OPTIONS':
        return '', 204

    try:
        data = request.get_json(silent=True) or {}
        request_id = data.get('requestId')
        new_status = data.get('newStatus')
        if request_id is None or not new_status:
            return jsonify({'error': 'requestId and newStatus are required'}), 400

        result = NotificationService.send_status_email(int(request_id), data.get('oldStatus'), new_status)
        return jsonify(result)

    except Exception as e:
        log_error("Error in send-status-email function", e)
        return jsonify({'error': str(e)}), 500
