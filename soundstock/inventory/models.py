from django.db import models
from soundstock.equipment.models import Equipment


class DamagedEquipment(models.Model):
    """Units taken out of stock until their repair completes"""
    STATUS_PENDING = 'pending'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_COMPLETED = 'completed'
    REPAIR_STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_COMPLETED, 'Completed'),
    ]
    # Allowed order of repair_status; a record never moves backwards
    STATUS_ORDER = [STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_COMPLETED]

    equipment = models.ForeignKey(Equipment, on_delete=models.CASCADE, related_name='damage_reports')
    quantity = models.PositiveIntegerField(default=1)
    description = models.TextField(blank=True, null=True)
    repair_status = models.CharField(max_length=20, choices=REPAIR_STATUS_CHOICES, default=STATUS_PENDING)
    reported_at = models.DateTimeField(auto_now_add=True)
    repaired_at = models.DateTimeField(blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'damaged_equipments'
        ordering = ['-reported_at']
        verbose_name_plural = 'Damaged equipment'
        indexes = [
            models.Index(fields=['repair_status'], name='idx_damaged_status'),
            models.Index(fields=['-reported_at'], name='idx_damaged_reported'),
        ]

    def __str__(self):
        return f"{self.equipment.name} x{self.quantity} ({self.repair_status})"

    @property
    def is_open(self):
        """Units of an open record are still out of stock"""
        return self.repair_status != self.STATUS_COMPLETED
