import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404
from soundstock.core.utils import create_audit_log
from .models import DamagedEquipment
from .serializers import (
    DamagedEquipmentSerializer, DamagedEquipmentCreateSerializer, DamagedEquipmentUpdateSerializer
)
from .stock import restore_stock

logger = logging.getLogger(__name__)


def _fresh(record_id):
    return DamagedEquipment.objects.select_related('equipment').get(pk=record_id)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def damaged_equipment_list_create(request):
    """List damage records or report damaged units"""
    if request.method == 'GET':
        queryset = DamagedEquipment.objects.select_related('equipment')

        status_filter = request.query_params.get('status', None)
        if status_filter:
            queryset = queryset.filter(repair_status=status_filter)

        equipment_id = request.query_params.get('equipment_id', None)
        if equipment_id:
            if not equipment_id.isdigit():
                return Response({'error': 'equipment_id must be a number'}, status=status.HTTP_400_BAD_REQUEST)
            queryset = queryset.filter(equipment_id=int(equipment_id))

        serializer = DamagedEquipmentSerializer(queryset.order_by('-reported_at'), many=True)
        return Response(serializer.data)

    serializer = DamagedEquipmentCreateSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        record = serializer.save()
        return Response(DamagedEquipmentSerializer(_fresh(record.id)).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def damaged_equipment_detail(request, pk):
    """Retrieve, update repair progress, or delete a damage record"""
    record = get_object_or_404(DamagedEquipment.objects.select_related('equipment'), pk=pk)

    if request.method == 'GET':
        return Response(DamagedEquipmentSerializer(record).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = DamagedEquipmentUpdateSerializer(
            record, data=request.data, partial=request.method == 'PATCH',
            context={'request': request},
        )
        if serializer.is_valid():
            record = serializer.save()
            return Response(DamagedEquipmentSerializer(_fresh(record.id)).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE: units of an open record go back to stock
    record_id = record.id
    equipment_name = record.equipment.name
    with transaction.atomic():
        locked = DamagedEquipment.objects.select_for_update().filter(pk=record_id).first()
        if locked is None:
            return Response({'error': 'Damage record not found'}, status=status.HTTP_404_NOT_FOUND)
        restored = locked.quantity if locked.is_open else 0
        if restored:
            restore_stock(locked.equipment_id, restored)
        locked.delete()
    create_audit_log(
        request=request,
        action='delete',
        model_name='DamagedEquipment',
        object_id=record_id,
        object_name=equipment_name,
        changes={'restored_quantity': restored},
    )
    return Response(status=status.HTTP_204_NO_CONTENT)
