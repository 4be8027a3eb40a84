from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from .models import Notification
from .serializers import NotificationSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    """Notifications of the current user, newest first, with the unread count"""
    queryset = Notification.objects.filter(user=request.user)
    unread_count = queryset.filter(is_read=False).count()

    if request.query_params.get('unread', '').lower() == 'true':
        queryset = queryset.filter(is_read=False)

    serializer = NotificationSerializer(queryset.order_by('-created_at'), many=True)
    return Response({
        'notifications': serializer.data,
        'unread_count': unread_count,
    })


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def notification_detail(request, pk):
    """Mark a notification as read or delete it"""
    notification = get_object_or_404(Notification, pk=pk, user=request.user)

    if request.method == 'PATCH':
        notification.is_read = True
        notification.save(update_fields=['is_read'])
        return Response(NotificationSerializer(notification).data)

    notification.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def notification_mark_all_read(request):
    updated = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
    return Response({'message': 'All notifications marked as read', 'updated': updated})
