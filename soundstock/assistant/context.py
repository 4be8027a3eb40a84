"""
Markdown snapshot of the inventory handed to the language model as context.
"""
import re

from django.utils import timezone
from soundstock.core.cache_utils import ASSISTANT_CONTEXT_CACHE_TTL, ASSISTANT_CONTEXT_PREFIX, cached_query
from soundstock.equipment.models import Equipment
from soundstock.events.models import Event
from soundstock.inventory.models import DamagedEquipment

EQUIPMENT_LIMIT = 50
EVENT_LIMIT = 20
DAMAGE_LIMIT = 20


def format_text(value):
    """Collapse whitespace; missing or blank values become '-'"""
    if value is None:
        return '-'
    text = re.sub(r'\s+', ' ', str(value)).strip()
    return text or '-'


def _equipment_section(equipments):
    lines = [
        f"- **{format_text(eq.name)}**\n  Category: {format_text(eq.category)}\n  Stock: {eq.stock} units"
        for eq in equipments
    ]
    total_stock = sum(eq.stock for eq in equipments)
    body = '\n\n'.join(lines) or '_No equipment data available._'
    return (
        "## Equipment\n"
        f"**Total equipment:** {len(equipments)}\n"
        f"**Total stock:** {total_stock} units\n\n"
        f"{body}"
    )


def _event_section(events):
    lines = []
    for ev in events:
        reserved = ', '.join(
            f"{format_text(r.equipment.name)} x{r.quantity}" for r in ev.equipment_events.all()
        ) or '-'
        local_date = timezone.localtime(ev.date) if timezone.is_aware(ev.date) else ev.date
        lines.append(
            f"- **{format_text(ev.title)}**\n"
            f"  Location: {format_text(ev.location)}\n"
            f"  Date: {local_date:%Y-%m-%d}\n"
            f"  Status: {format_text(ev.status)}\n"
            f"  Equipment: {reserved}"
        )
    body = '\n\n'.join(lines) or '_No events recorded yet._'
    return f"## Events\n**Total events:** {len(events)}\n\n{body}"


def _damage_section(records):
    lines = [
        f"- **{format_text(dm.equipment.name)}**\n"
        f"  Damaged: {dm.quantity} units, Reason: {format_text(dm.description)}\n"
        f"  Repair status: {format_text(dm.repair_status)}"
        for dm in records
    ]
    body = '\n\n'.join(lines) or '_No damaged equipment recorded._'
    return f"## Damaged equipment\n**Total damage records:** {len(records)}\n\n{body}"


@cached_query(cache_ttl=ASSISTANT_CONTEXT_CACHE_TTL, key_prefix=ASSISTANT_CONTEXT_PREFIX)
def build_inventory_context():
    equipments = list(Equipment.objects.order_by('-created_at')[:EQUIPMENT_LIMIT])
    events = list(
        Event.objects.prefetch_related('equipment_events__equipment').order_by('-date')[:EVENT_LIMIT]
    )
    records = list(
        DamagedEquipment.objects.select_related('equipment').order_by('-reported_at')[:DAMAGE_LIMIT]
    )
    return '\n\n---\n\n'.join([
        _equipment_section(equipments),
        _event_section(events),
        _damage_section(records),
    ])
