from django.urls import path
from .views import equipment_list_create, equipment_detail

urlpatterns = [
    path('equipments/', equipment_list_create, name='equipment-list-create'),
    path('equipments/<int:pk>/', equipment_detail, name='equipment-detail'),
]
