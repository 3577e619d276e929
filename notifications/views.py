"""
Notification views
"""
from django.conf import settings
from rest_framework import serializers, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from accounts.permissions import TENANT_PERMISSIONS
from students.models import contact_number_validator
from .sms import TEST_MESSAGE, send_sms


class SmsTestSerializer(serializers.Serializer):
    phoneNumber = serializers.CharField(validators=[contact_number_validator])
    message = serializers.CharField(required=False, allow_blank=True, max_length=500)


@api_view(['POST'])
@permission_classes(TENANT_PERMISSIONS)
def test_sms_view(request):
    """
    POST /api/notifications/test-sms
    Body: {phoneNumber, message?}
    """
    serializer = SmsTestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    if not settings.SMS_ENABLED:
        return Response(
            {'success': False, 'message': 'SMS is disabled', 'code': 'sms_disabled'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    result = send_sms(
        serializer.validated_data['phoneNumber'],
        serializer.validated_data.get('message') or TEST_MESSAGE,
    )
    if result.success:
        return Response({'success': True, 'message': 'SMS sent successfully!', 'data': result.data})
    return Response(
        {'success': False, 'message': 'Failed to send SMS', 'error': result.error},
        status=status.HTTP_502_BAD_GATEWAY,
    )
