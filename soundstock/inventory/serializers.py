from django.db import transaction
from django.utils import timezone
from rest_framework import serializers
from soundstock.core.utils import create_audit_log
from soundstock.equipment.models import Equipment
from soundstock.notifications.models import Notification
from soundstock.notifications.utils import notify_all_users
from .models import DamagedEquipment
from .stock import EquipmentNotFound, StockError, withdraw_stock, restore_stock


class EquipmentSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Equipment
        fields = ['id', 'name', 'category', 'stock']


class DamagedEquipmentSerializer(serializers.ModelSerializer):
    equipment = EquipmentSummarySerializer(read_only=True)
    equipment_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = DamagedEquipment
        fields = ['id', 'equipment_id', 'equipment', 'quantity', 'description', 'repair_status',
                  'reported_at', 'repaired_at', 'updated_at']


class DamagedEquipmentCreateSerializer(serializers.Serializer):
    """Report damage: the units leave stock right away"""
    equipment_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def create(self, validated_data):
        request = self.context.get('request')
        quantity = validated_data['quantity']
        with transaction.atomic():
            try:
                equipment = withdraw_stock(validated_data['equipment_id'], quantity)
            except EquipmentNotFound as e:
                raise serializers.ValidationError({'equipment_id': [e.message]})
            except StockError as e:
                raise serializers.ValidationError({'quantity': [e.message]})

            record = DamagedEquipment.objects.create(
                equipment=equipment,
                quantity=quantity,
                description=validated_data.get('description') or None,
            )

        create_audit_log(
            request=request,
            action='damage_report',
            model_name='DamagedEquipment',
            object_id=record.id,
            object_name=equipment.name,
            changes={'equipment_id': equipment.id, 'quantity': quantity},
        )
        notify_all_users(
            'Damage reported',
            f'{quantity} x {equipment.name} reported damaged and removed from stock.',
            Notification.TYPE_EQUIPMENT,
        )
        return record


class DamagedEquipmentUpdateSerializer(serializers.ModelSerializer):
    """
    Repair progress. Status moves forward only; changing the quantity of an
    open record moves the difference in or out of stock; completing the
    repair returns the units to stock.
    """
    quantity = serializers.IntegerField(min_value=1, required=False)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    repair_status = serializers.ChoiceField(choices=DamagedEquipment.REPAIR_STATUS_CHOICES, required=False)

    class Meta:
        model = DamagedEquipment
        fields = ['quantity', 'description', 'repair_status']

    def validate_repair_status(self, value):
        order = DamagedEquipment.STATUS_ORDER
        current = self.instance.repair_status
        if order.index(value) < order.index(current):
            raise serializers.ValidationError(f'Repair status cannot move back from {current} to {value}')
        return value

    def validate(self, attrs):
        instance = self.instance
        if not instance.is_open:
            changed = [
                field for field in ('quantity', 'repair_status')
                if field in attrs and attrs[field] != getattr(instance, field)
            ]
            if changed:
                raise serializers.ValidationError('A completed repair only accepts description changes')
        return attrs

    def update(self, instance, validated_data):
        request = self.context.get('request')

        with transaction.atomic():
            # Status and quantity are read from the locked row
            record = DamagedEquipment.objects.select_for_update().get(pk=instance.pk)
            old_quantity = record.quantity
            new_quantity = validated_data.get('quantity', old_quantity)
            old_status = record.repair_status
            new_status = validated_data.get('repair_status', old_status)
            order = DamagedEquipment.STATUS_ORDER

            if not record.is_open and (new_quantity != old_quantity or new_status != old_status):
                raise serializers.ValidationError('A completed repair only accepts description changes')
            if order.index(new_status) < order.index(old_status):
                raise serializers.ValidationError({
                    'repair_status': [f'Repair status cannot move back from {old_status} to {new_status}'],
                })
            completing = record.is_open and new_status == DamagedEquipment.STATUS_COMPLETED

            if record.is_open and new_quantity != old_quantity:
                difference = new_quantity - old_quantity
                try:
                    if difference > 0:
                        withdraw_stock(record.equipment_id, difference)
                    else:
                        restore_stock(record.equipment_id, -difference)
                except StockError as e:
                    raise serializers.ValidationError({'quantity': [e.message]})

            if completing:
                restore_stock(record.equipment_id, new_quantity)
                record.repaired_at = timezone.now()

            for attr, value in validated_data.items():
                setattr(record, attr, value)
            record.save()

        changes = {}
        if new_quantity != old_quantity:
            changes['quantity'] = {'old': old_quantity, 'new': new_quantity}
        if new_status != old_status:
            changes['repair_status'] = {'old': old_status, 'new': new_status}
        create_audit_log(
            request=request,
            action='repair_complete' if completing else 'repair_update',
            model_name='DamagedEquipment',
            object_id=record.id,
            object_name=record.equipment.name,
            changes=changes,
        )
        if completing:
            notify_all_users(
                'Repair completed',
                f'{new_quantity} x {record.equipment.name} repaired and back in stock.',
                Notification.TYPE_SUCCESS,
            )
        return record
