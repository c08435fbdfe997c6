"""
URL configuration for the marketplace service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - JWT token obtain/refresh
    /api/v1/orders/                - Order fulfillment
        {id}/status/               - Read status / request a transition (GET, PATCH)
    /api/v1/bookings/              - Booking fulfillment
        {id}/status/               - Read status / request a transition (GET, PATCH)
    /api/v1/payments/              - Escrow and gateway endpoints
        transactions/              - Transactions visible to the caller
        transactions/{id}/release/ - Admin manual payout release
        balance/                   - Seller earnings summary
        checkout/                  - Buyer payment method (card / bank transfer)
        verify/                    - Gateway redirect verification
        webhooks/payment/          - Gateway webhook endpoint (POST)
    /api/v1/returns/               - Return and dispute workflow
        {id}/                      - Return detail
        {id}/seller-response/      - Seller approve/reject
        {id}/admin-decision/       - Admin adjudication
        {id}/settle-clawback/      - Admin confirms manual clawback
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("", include("orders.urls")),
    path("payments/", include("payments.urls")),
    path("returns/", include("returns.urls")),
]

urlpatterns = [
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Marketplace Admin"
admin.site.site_title = "Marketplace Admin Portal"
admin.site.index_title = "Orders, escrow and disputes"
