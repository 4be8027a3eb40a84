"""
Stock bookkeeping for reservations and damage reports.

Every function here expects to run inside ``transaction.atomic()``: equipment
rows are locked with ``select_for_update`` before their stock is checked, and a
raised ``StockError`` is meant to roll the whole surrounding block back.
Stock is always changed with ``F()`` expressions, which bypass model signals,
so the dashboard cache is invalidated explicitly.
"""
import logging

from django.db.models import F
from soundstock.core.cache_utils import invalidate_dashboard_cache
from soundstock.core.utils import create_audit_log
from soundstock.equipment.models import Equipment
from soundstock.events.models import EquipmentEvent
from soundstock.notifications.models import Notification
from soundstock.notifications.utils import notify_all_users

logger = logging.getLogger(__name__)


class StockError(Exception):
    """Raised when a stock movement cannot be applied"""

    def __init__(self, message, equipment_id=None):
        super().__init__(message)
        self.message = message
        self.equipment_id = equipment_id


class EquipmentNotFound(StockError):
    pass


def _lock_equipment(equipment_ids):
    """Lock equipment rows in primary key order and return them by id"""
    rows = Equipment.objects.select_for_update().filter(pk__in=set(equipment_ids)).order_by('pk')
    return {equipment.pk: equipment for equipment in rows}


def notify_out_of_stock(equipment):
    notify_all_users(
        'Equipment out of stock',
        f'{equipment.name} ({equipment.category}) has no units left in stock.',
        Notification.TYPE_WARNING,
    )


def reserve_equipment(event, items, request=None):
    """
    Reserve equipment for an event.

    Args:
        event: Event the reservations belong to
        items: list of dicts with ``equipment_id`` and ``quantity``
        request: optional request, used for the audit trail

    Returns the created EquipmentEvent rows. Raises StockError when an
    equipment does not exist or has fewer units than requested.
    """
    if not items:
        return []

    locked = _lock_equipment(item['equipment_id'] for item in items)
    reservations = []
    emptied = []

    for item in items:
        equipment_id = item['equipment_id']
        quantity = item['quantity']
        equipment = locked.get(equipment_id)
        if equipment is None:
            raise EquipmentNotFound(f'Equipment with id {equipment_id} not found', equipment_id=equipment_id)
        if equipment.stock < quantity:
            raise StockError(
                f'Insufficient stock for {equipment.name}. Available: {equipment.stock}, requested: {quantity}',
                equipment_id=equipment_id,
            )

        reservations.append(EquipmentEvent.objects.create(equipment=equipment, event=event, quantity=quantity))
        Equipment.objects.filter(pk=equipment.pk).update(stock=F('stock') - quantity)
        # Row is locked, so the in-memory value stays accurate
        equipment.stock -= quantity
        if equipment.stock == 0:
            emptied.append(equipment)

    create_audit_log(
        request=request,
        action='stock_reserve',
        model_name='Event',
        object_id=event.id,
        object_name=event.title,
        changes={'items': [
            {'equipment_id': r.equipment_id, 'equipment': r.equipment.name, 'quantity': r.quantity}
            for r in reservations
        ]},
    )
    logger.info(f"Reserved {sum(r.quantity for r in reservations)} units for event {event.id}")

    invalidate_dashboard_cache()
    for equipment in emptied:
        notify_out_of_stock(equipment)
    return reservations


def release_event_equipment(event, request=None):
    """
    Give every unit reserved by the event back to stock and delete the
    reservations. Returns the number of units released.
    """
    reservations = list(event.equipment_events.select_related('equipment'))
    if not reservations:
        return 0

    _lock_equipment(r.equipment_id for r in reservations)
    for reservation in reservations:
        Equipment.objects.filter(pk=reservation.equipment_id).update(stock=F('stock') + reservation.quantity)
    event.equipment_events.all().delete()

    released = sum(r.quantity for r in reservations)
    create_audit_log(
        request=request,
        action='stock_release',
        model_name='Event',
        object_id=event.id,
        object_name=event.title,
        changes={'items': [
            {'equipment_id': r.equipment_id, 'equipment': r.equipment.name, 'quantity': r.quantity}
            for r in reservations
        ]},
    )
    logger.info(f"Released {released} units from event {event.id}")

    invalidate_dashboard_cache()
    return released


def withdraw_stock(equipment_id, quantity):
    """Take units out of stock (damage report). Returns the locked equipment."""
    equipment = _lock_equipment([equipment_id]).get(equipment_id)
    if equipment is None:
        raise EquipmentNotFound(f'Equipment with id {equipment_id} not found', equipment_id=equipment_id)
    if equipment.stock < quantity:
        raise StockError(
            f'Insufficient stock for {equipment.name}. Available: {equipment.stock}, requested: {quantity}',
            equipment_id=equipment_id,
        )

    Equipment.objects.filter(pk=equipment.pk).update(stock=F('stock') - quantity)
    equipment.stock -= quantity
    logger.info(f"Withdrew {quantity} units of equipment {equipment.id}, {equipment.stock} left")

    invalidate_dashboard_cache()
    if equipment.stock == 0:
        notify_out_of_stock(equipment)
    return equipment


def restore_stock(equipment_id, quantity):
    """Put units back into stock (repair completed or damage record removed)"""
    updated = Equipment.objects.filter(pk=equipment_id).update(stock=F('stock') + quantity)
    if not updated:
        raise EquipmentNotFound(f'Equipment with id {equipment_id} not found', equipment_id=equipment_id)
    logger.info(f"Restored {quantity} units of equipment {equipment_id}")
    invalidate_dashboard_cache()
