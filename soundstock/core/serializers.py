from rest_framework import serializers
from rest_framework_simplejwt.exceptions import AuthenticationFailed
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth.password_validation import validate_password
from .models import User, AuditLog


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'whatsapp', 'role', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    whatsapp = serializers.CharField(min_length=9, max_length=20)
    password = serializers.CharField(write_only=True, validators=[validate_password])

    class Meta:
        model = User
        fields = ['name', 'email', 'whatsapp', 'password']

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('Email is already registered')
        return value

    def validate_whatsapp(self, value):
        if User.objects.filter(whatsapp=value).exists():
            raise serializers.ValidationError('WhatsApp number is already registered')
        return value

    def create(self, validated_data):
        password = validated_data.pop('password')
        return User.objects.create_user(password=password, is_active=True, **validated_data)


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Profile edit for the current user, with optional password change"""
    whatsapp = serializers.CharField(min_length=9, max_length=20)
    current_password = serializers.CharField(write_only=True, required=False, allow_blank=True)
    new_password = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ['name', 'email', 'whatsapp', 'current_password', 'new_password']

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email__iexact=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError('Email is already used by another account')
        return value

    def validate_whatsapp(self, value):
        if User.objects.filter(whatsapp=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError('WhatsApp number is already used by another account')
        return value

    def validate(self, attrs):
        new_password = attrs.get('new_password')
        if new_password:
            current_password = attrs.get('current_password')
            if not current_password:
                raise serializers.ValidationError({'current_password': 'Current password is required to set a new password'})
            if not self.instance.check_password(current_password):
                raise serializers.ValidationError({'current_password': 'Current password is incorrect'})
            validate_password(new_password, self.instance)
        return attrs

    def update(self, instance, validated_data):
        validated_data.pop('current_password', None)
        new_password = validated_data.pop('new_password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if new_password:
            instance.set_password(new_password)
        instance.save()
        return instance


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        # Emails are stored lowercased at registration and profile edit
        email = attrs.get(self.username_field)
        if email:
            attrs[self.username_field] = email.strip().lower()
        data = super().validate(attrs)
        # Ensure user is active
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        return token


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'changes', 'ip_address', 'created_at']
