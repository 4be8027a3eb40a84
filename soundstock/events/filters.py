import django_filters
from django.db.models import Q
from .models import Event


class EventFilter(django_filters.FilterSet):
    """Filter for Event list"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    location = django_filters.CharFilter(field_name='location', lookup_expr='icontains')
    status = django_filters.ChoiceFilter(choices=Event.STATUS_CHOICES)
    date_from = django_filters.DateFilter(field_name='date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='date', lookup_expr='date__lte')

    class Meta:
        model = Event
        fields = ['search', 'location', 'status', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        """Case-insensitive match on title or description"""
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(Q(title__icontains=value) | Q(description__icontains=value))
