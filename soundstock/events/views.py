import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404
from soundstock.core.utils import create_audit_log
from soundstock.inventory.stock import release_event_equipment
from soundstock.notifications.models import Notification
from soundstock.notifications.utils import notify_all_users
from .filters import EventFilter
from .models import Event
from .serializers import EventSerializer
from .utils import build_event_report

logger = logging.getLogger(__name__)


def _event_queryset():
    return Event.objects.prefetch_related('equipment_events__equipment')


def _parse_ids(raw):
    """'1,2, 3' -> [1, 2, 3]; None if any part is not a number"""
    parts = [part.strip() for part in raw.split(',') if part.strip()]
    if not parts or not all(part.isdigit() for part in parts):
        return None
    return [int(part) for part in parts]


def _delete_event(request, event):
    """Release the event's reservations, then delete it"""
    event_id = event.id
    title = event.title
    released = release_event_equipment(event, request=request)
    event.delete()
    create_audit_log(
        request=request,
        action='delete',
        model_name='Event',
        object_id=event_id,
        object_name=title,
        changes={'released_units': released},
    )


@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def event_list_create(request):
    """List events, create an event, or bulk delete with ?ids=1,2"""
    if request.method == 'GET':
        filterset = EventFilter(request.query_params, queryset=_event_queryset())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer = EventSerializer(filterset.qs.order_by('-date'), many=True)
        return Response(serializer.data)

    if request.method == 'POST':
        serializer = EventSerializer(data=request.data, context={'request': request})
        if serializer.is_valid():
            event = serializer.save()
            create_audit_log(
                request=request,
                action='create',
                model_name='Event',
                object_id=event.id,
                object_name=event.title,
                changes={'date': str(event.date), 'location': event.location, 'status': event.status},
            )
            notify_all_users(
                'New event',
                f'{event.title} at {event.location} on {event.date:%Y-%m-%d %H:%M}',
                Notification.TYPE_EVENT,
            )
            event = _event_queryset().get(pk=event.pk)
            return Response(EventSerializer(event).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE (bulk)
    raw_ids = request.query_params.get('ids', '')
    ids = _parse_ids(raw_ids)
    if ids is None:
        return Response({'error': 'ids query parameter is required, e.g. ?ids=1,2'}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        events = list(Event.objects.filter(pk__in=ids))
        for event in events:
            _delete_event(request, event)
    logger.info(f"Bulk deleted {len(events)} events")
    return Response({'message': f'{len(events)} events deleted', 'deleted': len(events)})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def event_detail(request, pk):
    """Retrieve, update or delete an event"""
    event = get_object_or_404(_event_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(EventSerializer(event).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = EventSerializer(
            event, data=request.data, partial=request.method == 'PATCH',
            context={'request': request},
        )
        if serializer.is_valid():
            event = serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Event',
                object_id=event.id,
                object_name=event.title,
                changes={'fields': sorted(request.data.keys())},
            )
            event = _event_queryset().get(pk=event.pk)
            return Response(EventSerializer(event).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        _delete_event(request, event)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def event_report(request, pk):
    """Build the event report and mark the event as reported"""
    event = get_object_or_404(Event, pk=pk)
    report = build_event_report(event)

    if not event.report_generated:
        event.report_generated = True
        event.save(update_fields=['report_generated', 'updated_at'])

    create_audit_log(
        request=request,
        action='report_generate',
        model_name='Event',
        object_id=event.id,
        object_name=event.title,
        changes={'total_items': report['total_items']},
    )
    return Response(report)
