"""Fan-out of notifications to staff accounts"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from .models import Notification

logger = logging.getLogger(__name__)

User = get_user_model()


def notify_all_users(title, message, type=Notification.TYPE_INFO):
    """Create one notification per active user. Returns the number created."""
    try:
        user_ids = list(User.objects.filter(is_active=True).values_list('id', flat=True))
        with transaction.atomic():
            Notification.objects.bulk_create([
                Notification(user_id=user_id, title=title, message=message, type=type)
                for user_id in user_ids
            ])
        logger.debug(f"Notification '{title}' sent to {len(user_ids)} users")
        return len(user_ids)
    except Exception as e:
        # Notifications never block the operation that triggered them
        logger.error(f"Failed to create notifications '{title}': {str(e)}")
        return 0
