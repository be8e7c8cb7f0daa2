from rest_framework import serializers
from django.contrib.auth import password_validation
from .models import User


class StaffUserSerializer(serializers.ModelSerializer):
    """Staff account for profile display."""

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'display_name',
            'role',
            'is_active',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class StaffLoginSerializer(serializers.Serializer):
    """Serializer for staff login."""

    username = serializers.CharField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class MemberLoginSerializer(serializers.Serializer):
    """Serializer for member login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )


class MemberRegistrationSerializer(serializers.Serializer):
    """Serializer for member self-registration."""

    name = serializers.CharField(max_length=200)
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)

    def validate_password(self, value):
        password_validation.validate_password(value)
        return value
