"""
Dashboard summary with caching

The shared aggregates are cached for five minutes and invalidated whenever
equipment, events, reservations or damage records change. The per-user unread
notification count is never cached.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.conf import settings
from django.db.models import Count, Q, Sum
from django.utils import timezone
from soundstock.core.cache_utils import get_cached_dashboard_summary, cache_dashboard_summary
from soundstock.equipment.models import Equipment
from soundstock.events.models import Event
from soundstock.inventory.models import DamagedEquipment
from soundstock.notifications.models import Notification
import logging

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


def build_dashboard_summary():
    now = timezone.now()
    threshold = settings.LOW_STOCK_THRESHOLD

    equipment_stats = Equipment.objects.aggregate(
        total_equipment=Count('id'),
        total_stock=Sum('stock'),
        low_stock=Count('id', filter=Q(stock__gt=0, stock__lt=threshold)),
        out_of_stock=Count('id', filter=Q(stock=0)),
    )
    damage_stats = DamagedEquipment.objects.exclude(
        repair_status=DamagedEquipment.STATUS_COMPLETED
    ).aggregate(
        damaged_units=Sum('quantity'),
        pending_repairs=Count('id'),
    )
    event_stats = Event.objects.aggregate(
        total_events=Count('id'),
        upcoming_events=Count('id', filter=Q(date__gte=now)),
        past_events=Count('id', filter=Q(date__lt=now)),
    )

    recent_equipment = [
        {
            'id': eq.id,
            'name': eq.name,
            'category': eq.category,
            'stock': eq.stock,
            'created_at': eq.created_at.isoformat(),
        }
        for eq in Equipment.objects.order_by('-created_at')[:RECENT_LIMIT]
    ]
    upcoming = [
        {
            'id': ev.id,
            'title': ev.title,
            'date': ev.date.isoformat(),
            'location': ev.location,
            'status': ev.status,
        }
        for ev in Event.objects.filter(date__gte=now).order_by('date')[:RECENT_LIMIT]
    ]

    return {
        'total_equipment': equipment_stats['total_equipment'],
        'total_stock': equipment_stats['total_stock'] or 0,
        'low_stock_items': equipment_stats['low_stock'],
        'out_of_stock_items': equipment_stats['out_of_stock'],
        'low_stock_threshold': threshold,
        'damaged_units': damage_stats['damaged_units'] or 0,
        'pending_repairs': damage_stats['pending_repairs'],
        'total_events': event_stats['total_events'],
        'upcoming_events': event_stats['upcoming_events'],
        'past_events': event_stats['past_events'],
        'recent_equipment': recent_equipment,
        'next_events': upcoming,
        'generated_at': now.isoformat(),
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_summary(request):
    """Inventory and event overview for the dashboard"""
    summary = None
    cache_key = None
    cache_status = 'MISS'
    try:
        summary, cache_key = get_cached_dashboard_summary()
        if summary is not None:
            cache_status = 'HIT'
    except Exception as e:
        logger.warning(f"Cache unavailable, proceeding without cache: {e}")

    if summary is None:
        summary = build_dashboard_summary()
        if cache_key:
            try:
                cache_dashboard_summary(cache_key, summary)
            except Exception as e:
                logger.warning(f"Could not cache dashboard summary: {e}")

    data = dict(summary)
    data['unread_notifications'] = Notification.objects.filter(user=request.user, is_read=False).count()

    response = Response(data)
    response['X-Cache'] = cache_status
    return response
