"""
Authentication views
"""
import logging

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .serializers import LoginSerializer, RegisterSerializer, UserSerializer
from .tokens import issue_tokens

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """
    POST /api/auth/register
    Register a new institute with its owner account (starts on trial).
    Returns: {message, instituteCode, instituteName, trialDays}
    """
    serializer = RegisterSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(
            {'detail': 'Validation failed', 'code': 'validation_error', 'errors': serializer.errors},
            status=status.HTTP_400_BAD_REQUEST,
        )
    institute = serializer.save()
    logger.info('Registered institute %s (%s)', institute.code, institute.name)
    return Response(
        {
            'message': 'Institute registered successfully! You can now login.',
            'instituteCode': institute.code,
            'instituteName': institute.name,
            'trialDays': settings.TRIAL_DAYS,
        },
        status=status.HTTP_201_CREATED,
    )


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    POST /api/auth/login
    Login with email and password
    Returns: {token, refreshToken, user: {...institute info}}

    Status codes:
    - 200: Success
    - 400: Invalid request format
    - 401: Invalid credentials or disabled account
    - 403: Institute subscription inactive
    """
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = serializer.validated_data['user']
    refresh = issue_tokens(user)
    return Response(
        {
            'token': str(refresh.access_token),
            'refreshToken': str(refresh),
            'user': UserSerializer(user).data,
        },
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    """
    GET /api/auth/me
    Current user with institute info.
    """
    return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password_view(request):
    """
    POST /api/auth/change-password
    Body: { currentPassword, newPassword }
    """
    current = request.data.get('currentPassword') or request.data.get('current_password')
    new_pw = request.data.get('newPassword') or request.data.get('new_password')

    if not current or not new_pw:
        return Response(
            {'detail': 'currentPassword and newPassword are required', 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if len(new_pw) < 6:
        return Response(
            {'detail': 'New password must be at least 6 characters', 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST,
        )

    user = request.user
    if not user.check_password(current):
        return Response(
            {'detail': 'Current password is incorrect', 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST,
        )

    user.set_password(new_pw)
    user.save(update_fields=['password', 'updated_at'])
    return Response({'detail': 'Password changed successfully'}, status=status.HTTP_200_OK)
