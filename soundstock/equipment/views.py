import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from soundstock.core.utils import create_audit_log
from .filters import EquipmentFilter
from .models import Equipment
from .serializers import EquipmentSerializer
from .utils import delete_image_file

logger = logging.getLogger(__name__)

TRACKED_FIELDS = ['name', 'category', 'stock']


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def equipment_list_create(request):
    """List all equipment or create a new item"""
    if request.method == 'GET':
        queryset = Equipment.objects.all()
        filterset = EquipmentFilter(request.query_params, queryset=queryset)
        queryset = filterset.qs.order_by('-created_at')
        serializer = EquipmentSerializer(queryset, many=True, context={'request': request})
        return Response(serializer.data)

    serializer = EquipmentSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        equipment = serializer.save()
        create_audit_log(
            request=request,
            action='create',
            model_name='Equipment',
            object_id=equipment.id,
            object_name=equipment.name,
            changes={field: getattr(equipment, field) for field in TRACKED_FIELDS},
        )
        logger.info(f"Equipment created: {equipment.name} (stock={equipment.stock})")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def equipment_detail(request, pk):
    """Retrieve, update or delete an equipment item"""
    equipment = get_object_or_404(Equipment, pk=pk)

    if request.method == 'GET':
        serializer = EquipmentSerializer(equipment, context={'request': request})
        return Response(serializer.data)

    if request.method in ('PUT', 'PATCH'):
        before = {field: getattr(equipment, field) for field in TRACKED_FIELDS}
        serializer = EquipmentSerializer(
            equipment, data=request.data, partial=request.method == 'PATCH',
            context={'request': request},
        )
        if serializer.is_valid():
            equipment = serializer.save()
            changes = {}
            for field in TRACKED_FIELDS:
                if field not in serializer.validated_data:
                    continue
                new_value = getattr(equipment, field)
                if before[field] != new_value:
                    changes[field] = {'old': before[field], 'new': new_value}
            create_audit_log(
                request=request,
                action='update',
                model_name='Equipment',
                object_id=equipment.id,
                object_name=equipment.name,
                changes=changes,
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE: reservations and damage records go with the equipment
    equipment_id = equipment.id
    equipment_name = equipment.name
    delete_image_file(equipment.image)
    equipment.delete()
    create_audit_log(
        request=request,
        action='delete',
        model_name='Equipment',
        object_id=equipment_id,
        object_name=equipment_name,
    )
    return Response(status=status.HTTP_204_NO_CONTENT)
