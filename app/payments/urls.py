"""
URL configuration for the payments app.

Routes:
    - POST checkout/ - Record the buyer's payment method
    - POST verify/ - Gateway redirect verification
    - GET transactions/ - Transactions visible to the caller
    - POST transactions/<id>/release/ - Admin release
    - GET balance/ - Seller earnings summary
    - POST webhooks/payment/ - Gateway webhook endpoint

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments import views
from payments.webhooks.views import payment_webhook

app_name = "payments"

urlpatterns = [
    path("checkout/", views.CheckoutView.as_view(), name="checkout"),
    path("verify/", views.PaymentVerifyView.as_view(), name="verify"),
    path("transactions/", views.TransactionListView.as_view(), name="transaction_list"),
    path(
        "transactions/<uuid:transaction_id>/release/",
        views.TransactionReleaseView.as_view(),
        name="transaction_release",
    ),
    path("balance/", views.SellerBalanceView.as_view(), name="balance"),
    # Webhook endpoints
    path("webhooks/payment/", payment_webhook, name="payment_webhook"),
]
