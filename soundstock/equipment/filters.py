import django_filters
from django.db.models import Q
from .models import Equipment


class EquipmentFilter(django_filters.FilterSet):
    """Filter for Equipment list"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(field_name='category', lookup_expr='exact')

    class Meta:
        model = Equipment
        fields = ['search', 'category']

    def filter_search(self, queryset, name, value):
        """Case-insensitive match on name or category"""
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(category__icontains=value))
