from django.contrib import admin
from .models import Event, EquipmentEvent


class EquipmentEventInline(admin.TabularInline):
    model = EquipmentEvent
    extra = 0
    readonly_fields = ['equipment', 'quantity']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ['title', 'date', 'location', 'status', 'report_generated']
    list_filter = ['status', 'report_generated', 'date']
    search_fields = ['title', 'description', 'location']
    ordering = ['-date']
    inlines = [EquipmentEventInline]


@admin.register(EquipmentEvent)
class EquipmentEventAdmin(admin.ModelAdmin):
    list_display = ['event', 'equipment', 'quantity', 'created_at']
    search_fields = ['event__title', 'equipment__name']
    readonly_fields = ['event', 'equipment', 'quantity', 'created_at']

    def has_add_permission(self, request):
        return False
