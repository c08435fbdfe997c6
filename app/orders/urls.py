"""
URL configuration for the orders app.

Routes:
    - GET/PATCH orders/<id>/status/ - Order status
    - GET/PATCH bookings/<id>/status/ - Booking status

Included at /api/v1/ in the main URLconf.
"""

from django.urls import path

from orders import views

app_name = "orders"

urlpatterns = [
    path("orders/<uuid:pk>/status/", views.OrderStatusView.as_view(), name="order_status"),
    path("bookings/<uuid:pk>/status/", views.BookingStatusView.as_view(), name="booking_status"),
]
