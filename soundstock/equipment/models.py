from django.db import models
from .utils import equipment_image_path


class Equipment(models.Model):
    """A piece of rentable gear; stock is the number of units available right now"""
    name = models.CharField(max_length=200)
    category = models.CharField(max_length=100)
    stock = models.PositiveIntegerField(default=1)
    image = models.ImageField(upload_to=equipment_image_path, blank=True, null=True, max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'equipments'
        ordering = ['-created_at']
        verbose_name_plural = 'Equipment'
        indexes = [
            models.Index(fields=['category'], name='idx_equipment_category'),
            models.Index(fields=['name'], name='idx_equipment_name'),
        ]

    def __str__(self):
        return f"{self.name} ({self.category})"
