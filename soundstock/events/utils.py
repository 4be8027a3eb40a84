from django.utils import timezone


def build_event_report(event):
    """Event sheet: details plus the reserved equipment lines"""
    lines = [
        {
            'equipment_id': reservation.equipment_id,
            'name': reservation.equipment.name,
            'category': reservation.equipment.category,
            'quantity': reservation.quantity,
        }
        for reservation in event.equipment_events.select_related('equipment').order_by('equipment__name')
    ]
    return {
        'event': {
            'id': event.id,
            'title': event.title,
            'date': event.date,
            'location': event.location,
            'description': event.description or '',
            'status': event.status,
        },
        'equipment': lines,
        'total_items': sum(line['quantity'] for line in lines),
        'generated_at': timezone.now(),
    }
