from django.urls import path
from . import views

urlpatterns = [
    path('create/', views.create_request),
    path('bulk/', views.create_bulk_request),
    path('mine/', views.my_requests),
    path('list/', views.list_requests),
    path('<int:request_id>/', views.request_detail),
    path('<int:request_id>/approve/', views.approve_request, name='approve_request'),
    path('<int:request_id>/reject/', views.reject_request, name='reject_request'),
    path('<int:request_id>/fulfill/', views.fulfill_request, name='fulfill_request'),
    path('<int:request_id>/cancel/', views.cancel_request, name='cancel_request'),
    path('<int:request_id>/delete/', views.delete_request),
    path('group/<str:group_id>/approve/', views.approve_group, name='approve_group'),
    path('group/<str:group_id>/reject/', views.reject_group, name='reject_group'),
    path('group/<str:group_id>/fulfill/', views.fulfill_group, name='fulfill_group'),

    path('notifications/', views.list_notifications),
    path('notifications/unread-count/', views.unread_count),
    path('notifications/read-all/', views.mark_all_notifications_read),
    path('notifications/<int:notification_id>/read/', views.mark_notification_read),

    path('new-items/', views.list_new_item_requests),
    path('new-items/submit/', views.submit_new_item_request),
    path('new-items/<int:new_item_id>/decide/', views.decide_new_item_request),
    path('new-items/<int:new_item_id>/delete/', views.delete_new_item_request),
]
