"""
Serializers for accounts app
"""
import re

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed, PermissionDenied

from core.models import Institute
from core.utils import generate_institute_code

User = get_user_model()

CONTACT_NUMBER_RE = re.compile(r'^[0-9]{10}$')


def validate_contact_number(value):
    if not CONTACT_NUMBER_RE.match(value or ''):
        raise serializers.ValidationError('Contact number must be 10 digits')
    return value


class InstituteSummarySerializer(serializers.ModelSerializer):
    instituteName = serializers.CharField(source='name', read_only=True)
    instituteCode = serializers.CharField(source='code', read_only=True)
    subscriptionStatus = serializers.CharField(source='subscription_status', read_only=True)
    subscriptionExpiry = serializers.DateTimeField(source='subscription_expiry', read_only=True)

    class Meta:
        model = Institute
        fields = ['instituteName', 'instituteCode', 'subscriptionStatus', 'subscriptionExpiry']


class UserSerializer(serializers.ModelSerializer):
    """User serializer for API responses; flattens institute info."""
    fullName = serializers.CharField(source='full_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'fullName', 'role']
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if instance.institute_id:
            data.update(InstituteSummarySerializer(instance.institute).data)
        return data


class RegisterSerializer(serializers.Serializer):
    """Institute registration: creates the institute and its owner account."""
    instituteName = serializers.CharField(min_length=3, max_length=100, trim_whitespace=True)
    ownerName = serializers.CharField(min_length=3, max_length=50, trim_whitespace=True)
    email = serializers.EmailField()
    contactNumber = serializers.CharField(validators=[validate_contact_number])
    address = serializers.CharField(required=False, allow_blank=True, default='')
    username = serializers.CharField(min_length=3, max_length=20, trim_whitespace=True)
    password = serializers.CharField(min_length=6, write_only=True, style={'input_type': 'password'})

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError('Email already registered')
        return value

    def create(self, validated_data):
        with transaction.atomic():
            institute = Institute.objects.create(
                name=validated_data['instituteName'],
                code=generate_institute_code(validated_data['instituteName']),
                owner_name=validated_data['ownerName'],
                email=validated_data['email'],
                contact_number=validated_data['contactNumber'],
                address=validated_data.get('address') or '',
                subscription_status=Institute.STATUS_TRIAL,
            )
            User.objects.create_user(
                email=validated_data['email'],
                password=validated_data['password'],
                username=validated_data['username'],
                full_name=validated_data['ownerName'],
                phone=validated_data['contactNumber'],
                role=User.ROLE_OWNER,
                institute=institute,
            )
        return institute


class LoginSerializer(serializers.Serializer):
    """Login serializer"""
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate(self, attrs):
        email = attrs.get('email', '').lower()
        password = attrs.get('password')

        try:
            user = User.objects.select_related('institute').get(email=email)
        except User.DoesNotExist:
            raise AuthenticationFailed('Invalid email or password.')

        if not user.check_password(password):
            raise AuthenticationFailed('Invalid email or password.')

        if not user.is_active:
            raise AuthenticationFailed('User account is disabled.')

        if user.institute_id and not user.institute.is_subscription_active:
            raise PermissionDenied('Your subscription has expired. Please contact support.')

        attrs['user'] = user
        return attrs
