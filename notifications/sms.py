"""
Outbound SMS through the Fast2SMS bulk API.

send_sms never raises: transport and API errors are logged and returned
as SmsResult(success=False). Callers decide what a failure means.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

ABSENCE_TEMPLATE = (
    "Dear Parent, Your child {student_name} is absent from {institute_name} "
    "today ({date}). Please contact us for any queries."
)
TEST_MESSAGE = "Test SMS from Tuition Management System. Your system is working correctly!"


@dataclass
class SmsResult:
    success: bool
    data: Any = None
    error: Optional[str] = None


def send_sms(phone_number, message):
    """POST one message to Fast2SMS. Returns SmsResult."""
    api_key = settings.FAST2SMS_API_KEY
    if not api_key:
        logger.error('SMS not sent to %s: FAST2SMS_API_KEY is not configured', phone_number)
        return SmsResult(success=False, error='SMS provider is not configured')

    payload = {
        'route': 'v3',
        'sender_id': settings.FAST2SMS_SENDER_ID,
        'message': message,
        'language': 'english',
        'flash': 0,
        'numbers': phone_number,
    }
    headers = {
        'authorization': api_key,
        'Content-Type': 'application/json',
    }
    try:
        response = requests.post(
            settings.FAST2SMS_URL,
            json=payload,
            headers=headers,
            timeout=settings.SMS_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as exc:
        logger.error('SMS to %s failed: %s', phone_number, exc)
        return SmsResult(success=False, error=str(exc))

    if isinstance(data, dict) and data.get('return') is False:
        error = data.get('message') or 'SMS provider rejected the request'
        logger.error('SMS to %s rejected: %s', phone_number, error)
        return SmsResult(success=False, data=data, error=str(error))

    logger.info('SMS sent to %s', phone_number)
    return SmsResult(success=True, data=data)


def send_absence_notification(student_name, contact_number, date, institute_name):
    message = ABSENCE_TEMPLATE.format(
        student_name=student_name,
        institute_name=institute_name,
        date=date.strftime('%d/%m/%Y'),
    )
    logger.info('Sending absence SMS for %s to %s', student_name, contact_number)
    return send_sms(contact_number, message)
