from django.db import models
from soundstock.equipment.models import Equipment


class Event(models.Model):
    STATUS_UPCOMING = 'upcoming'
    STATUS_ONGOING = 'ongoing'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_UPCOMING, 'Upcoming'),
        (STATUS_ONGOING, 'Ongoing'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    date = models.DateTimeField()
    location = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_UPCOMING)
    report_generated = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'events'
        ordering = ['-date']
        indexes = [
            models.Index(fields=['-date'], name='idx_event_date'),
            models.Index(fields=['status'], name='idx_event_status'),
        ]

    def __str__(self):
        return self.title

    @property
    def total_items(self):
        return sum(reservation.quantity for reservation in self.equipment_events.all())


class EquipmentEvent(models.Model):
    """Reservation: how many units of an equipment item are allocated to an event"""
    equipment = models.ForeignKey(Equipment, on_delete=models.CASCADE, related_name='reservations')
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='equipment_events')
    quantity = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'equipment_events'
        unique_together = [['equipment', 'event']]
        ordering = ['id']

    def __str__(self):
        return f"{self.event} - {self.equipment} x{self.quantity}"
