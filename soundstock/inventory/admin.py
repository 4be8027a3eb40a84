from django.contrib import admin
from .models import DamagedEquipment


@admin.register(DamagedEquipment)
class DamagedEquipmentAdmin(admin.ModelAdmin):
    list_display = ['equipment', 'quantity', 'repair_status', 'reported_at', 'repaired_at']
    list_filter = ['repair_status', 'reported_at']
    search_fields = ['equipment__name', 'description']
    ordering = ['-reported_at']
    # Stock bookkeeping happens through the API; keep the numbers read-only here
    readonly_fields = ['equipment', 'quantity', 'repair_status', 'reported_at', 'repaired_at']

    def has_add_permission(self, request):
        return False
