from django.conf import settings
from django.db import transaction
from rest_framework import serializers
from .models import Equipment
from .utils import delete_image_file


class EquipmentSerializer(serializers.ModelSerializer):
    image = serializers.ImageField(required=False, allow_null=True, write_only=True)
    image_url = serializers.SerializerMethodField()
    delete_image = serializers.BooleanField(required=False, write_only=True)

    class Meta:
        model = Equipment
        fields = ['id', 'name', 'category', 'stock', 'image', 'image_url', 'delete_image',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_image_url(self, obj):
        if not obj.image:
            return None
        request = self.context.get('request')
        if request is not None:
            return request.build_absolute_uri(obj.image.url)
        return obj.image.url

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name is required')
        return value

    def validate_category(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Category is required')
        return value

    def validate_image(self, value):
        if value is None:
            return value
        content_type = getattr(value, 'content_type', None)
        if content_type not in settings.EQUIPMENT_IMAGE_CONTENT_TYPES:
            raise serializers.ValidationError('Unsupported image type. Use JPEG, PNG or WebP.')
        if value.size > settings.EQUIPMENT_IMAGE_MAX_SIZE:
            max_mb = settings.EQUIPMENT_IMAGE_MAX_SIZE // (1024 * 1024)
            raise serializers.ValidationError(f'Image is too large (max {max_mb} MB)')
        return value

    def create(self, validated_data):
        validated_data.pop('delete_image', None)
        if validated_data.get('image') is None:
            validated_data.pop('image', None)
        return super().create(validated_data)

    def update(self, instance, validated_data):
        delete_image = validated_data.pop('delete_image', False)
        new_image = validated_data.pop('image', None)
        old_image = instance.image if instance.image else None

        with transaction.atomic():
            # Only write stock when the request sets it
            locked = Equipment.objects.select_for_update().get(pk=instance.pk)
            if 'stock' not in validated_data:
                instance.stock = locked.stock

            if new_image is not None:
                instance.image = new_image
            elif delete_image:
                instance.image = None

            instance = super().update(instance, validated_data)

        # Replaced or removed: drop the old file from storage
        if old_image and (new_image is not None or delete_image):
            delete_image_file(old_image)
        return instance
