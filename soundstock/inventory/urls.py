from django.urls import path
from .views import damaged_equipment_list_create, damaged_equipment_detail

urlpatterns = [
    path('damaged-equipments/', damaged_equipment_list_create, name='damaged-equipment-list-create'),
    path('damaged-equipments/<int:pk>/', damaged_equipment_detail, name='damaged-equipment-detail'),
]
