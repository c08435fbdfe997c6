"""
URL configuration for the returns app.

Routes:
    - GET/POST / - List or open return requests
    - GET <id>/ - Return request detail
    - PUT <id>/seller-response/ - Seller approve/reject
    - PUT <id>/admin-decision/ - Admin adjudication
    - POST <id>/settle-clawback/ - Admin confirms a manual clawback

All routes are prefixed with /api/v1/returns/ when included in the main URLconf.
"""

from django.urls import path

from returns import views

app_name = "returns"

urlpatterns = [
    path("", views.ReturnRequestListCreateView.as_view(), name="return_list"),
    path("<uuid:pk>/", views.ReturnRequestDetailView.as_view(), name="return_detail"),
    path(
        "<uuid:pk>/seller-response/",
        views.SellerResponseView.as_view(),
        name="seller_response",
    ),
    path(
        "<uuid:pk>/admin-decision/",
        views.AdminDecisionView.as_view(),
        name="admin_decision",
    ),
    path(
        "<uuid:pk>/settle-clawback/",
        views.SettleClawbackView.as_view(),
        name="settle_clawback",
    ),
]
