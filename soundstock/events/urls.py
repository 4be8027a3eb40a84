from django.urls import path
from .views import event_list_create, event_detail, event_report

urlpatterns = [
    path('events/', event_list_create, name='event-list-create'),
    path('events/<int:pk>/', event_detail, name='event-detail'),
    path('events/<int:pk>/report/', event_report, name='event-report'),
]
