from django.db import transaction
from rest_framework import serializers
from soundstock.inventory.serializers import EquipmentSummarySerializer
from soundstock.inventory.stock import StockError, reserve_equipment, release_event_equipment
from .models import Event, EquipmentEvent


class EquipmentEventSerializer(serializers.ModelSerializer):
    equipment = EquipmentSummarySerializer(read_only=True)

    class Meta:
        model = EquipmentEvent
        fields = ['id', 'equipment_id', 'equipment', 'quantity']


class EquipmentItemSerializer(serializers.Serializer):
    """One requested line: which equipment and how many units"""
    equipment_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)


class EventSerializer(serializers.ModelSerializer):
    equipments = EquipmentItemSerializer(many=True, write_only=True, required=False)
    equipment_events = EquipmentEventSerializer(many=True, read_only=True)
    total_items = serializers.SerializerMethodField()

    class Meta:
        model = Event
        fields = ['id', 'title', 'description', 'date', 'location', 'status', 'report_generated',
                  'equipments', 'equipment_events', 'total_items', 'created_at', 'updated_at']
        read_only_fields = ['report_generated', 'created_at', 'updated_at']

    def get_total_items(self, obj):
        return obj.total_items

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Title is required')
        return value

    def validate_location(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Location is required')
        return value

    def validate_equipments(self, value):
        ids = [item['equipment_id'] for item in value]
        duplicates = sorted({equipment_id for equipment_id in ids if ids.count(equipment_id) > 1})
        if duplicates:
            raise serializers.ValidationError(
                f"Equipment listed more than once: {', '.join(str(d) for d in duplicates)}"
            )
        return value

    def create(self, validated_data):
        request = self.context.get('request')
        items = validated_data.pop('equipments', [])
        with transaction.atomic():
            event = Event.objects.create(**validated_data)
            try:
                reserve_equipment(event, items, request=request)
            except StockError as e:
                raise serializers.ValidationError({'equipments': [e.message]})
        return event

    def update(self, instance, validated_data):
        request = self.context.get('request')
        # None means "leave reservations alone"; an empty list clears them
        items = validated_data.pop('equipments', None)
        with transaction.atomic():
            for attr, value in validated_data.items():
                setattr(instance, attr, value)
            instance.save()

            if items is not None:
                release_event_equipment(instance, request=request)
                try:
                    reserve_equipment(instance, items, request=request)
                except StockError as e:
                    raise serializers.ValidationError({'equipments': [e.message]})
        return instance
