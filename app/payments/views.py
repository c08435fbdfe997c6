"""
DRF views for the payments app.

Endpoints:
    POST /api/v1/payments/checkout/ - Buyer chooses how to pay
    POST /api/v1/payments/verify/ - Gateway redirect verification
    GET /api/v1/payments/transactions/ - List visible transactions
    POST /api/v1/payments/transactions/{id}/release/ - Admin release
    GET /api/v1/payments/balance/ - Seller earnings summary
    POST /api/v1/payments/webhooks/payment/ - Gateway webhook (payments.webhooks)

Security:
    - All endpoints require authentication except the webhook
    - The webhook verifies a shared secret header
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.pagination import CreatedAtCursorPagination
from core.permissions import IsBuyer, IsMarketplaceAdmin, IsSeller
from orders.services import FulfillmentService
from orders.state_machines import COMPLETED
from payments.exceptions import InvalidStateError
from payments.selectors import seller_balance, to_transaction_view, transactions_for
from payments.serializers import (
    CheckoutSerializer,
    PaymentVerificationSerializer,
    SellerBalanceSerializer,
    TransactionViewSerializer,
    VerificationResultSerializer,
)
from payments.services import EscrowService
from payments.services.verification_service import PaymentVerificationService
from payments.state_machines import TransactionStatus

logger = logging.getLogger(__name__)


class CheckoutView(APIView):
    """
    Record the buyer's payment method for an unpaid order or booking.

    POST /api/v1/payments/checkout/

    Card payments store the gateway success indicator; bank transfers open
    a pending transaction that an admin confirms by marking the record paid.
    """

    permission_classes = [IsAuthenticated, IsBuyer]

    @extend_schema(
        operation_id="payments_checkout",
        summary="Start checkout",
        request=CheckoutSerializer,
        responses={
            200: OpenApiResponse(description="Checkout recorded"),
            403: OpenApiResponse(description="Not the buyer"),
            409: OpenApiResponse(description="Record is not awaiting payment"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        record = FulfillmentService().open_checkout(
            data["transactionType"],
            data["transactionRef"],
            request.user,
            payment_method=data["paymentMethod"],
            success_indicator=data["successIndicator"],
        )
        return Response(
            {
                "transactionRef": str(record.pk),
                "transactionType": record.kind,
                "paymentMethod": record.payment_method,
                "status": record.status,
                "amount": f"{record.gross_amount:.2f}",
            },
            status=status.HTTP_200_OK,
        )


class PaymentVerifyView(APIView):
    """
    Verify the gateway redirect result.

    POST /api/v1/payments/verify/

    Used when the buyer returns from the gateway page, possibly before the
    webhook has arrived.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="payments_verify",
        summary="Verify gateway redirect",
        request=PaymentVerificationSerializer,
        responses={200: VerificationResultSerializer},
        tags=["Payments"],
    )
    def post(self, request):
        serializer = PaymentVerificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = PaymentVerificationService().verify(
            request.user,
            data["transactionRef"],
            data["resultIndicator"],
            transaction_type=data.get("transactionType"),
        )
        return Response(VerificationResultSerializer(result).data, status=status.HTTP_200_OK)


class TransactionListView(APIView):
    """
    List transactions visible to the current user.

    GET /api/v1/payments/transactions/?status=escrow

    Admins see every transaction, sellers their sales, buyers their purchases.
    """

    permission_classes = [IsAuthenticated]
    pagination_class = CreatedAtCursorPagination

    @extend_schema(
        operation_id="payments_transactions_list",
        summary="List transactions",
        parameters=[
            OpenApiParameter(
                name="status",
                type=str,
                enum=TransactionStatus.values,
                required=False,
                description="Filter by transaction status",
            ),
        ],
        responses={200: TransactionViewSerializer(many=True)},
        tags=["Payments"],
    )
    def get(self, request):
        queryset = transactions_for(request.user, status=request.query_params.get("status"))

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(queryset, request, view=self)
        views = [to_transaction_view(txn) for txn in page]
        return paginator.get_paginated_response(TransactionViewSerializer(views, many=True).data)


class TransactionReleaseView(APIView):
    """
    Admin release of an escrowed transaction.

    POST /api/v1/payments/transactions/{id}/release/

    Release always happens through completion of the parent order or
    booking, so this completes the parent as admin. Only parents at the
    last fulfillment step (delivered / in progress) can be completed, and
    only a transaction still in escrow can be released.
    """

    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @extend_schema(
        operation_id="payments_transaction_release",
        summary="Release escrow (admin)",
        request=None,
        responses={
            200: TransactionViewSerializer,
            400: OpenApiResponse(description="Parent cannot be completed yet"),
            404: OpenApiResponse(description="Transaction not found"),
            409: OpenApiResponse(
                description="Transaction no longer in escrow, or concurrent modification"
            ),
        },
        tags=["Payments"],
    )
    def post(self, request, transaction_id):
        escrow = EscrowService()
        txn = escrow.get(transaction_id)
        if txn.status != TransactionStatus.ESCROW:
            raise InvalidStateError(
                f"Cannot release transaction in '{txn.status}' status",
                details={
                    "transaction_id": str(txn.id),
                    "status": txn.status,
                    "operation": "release",
                },
            )
        FulfillmentService(escrow=escrow).transition(
            txn.parent_kind, txn.parent_id, COMPLETED, request.user
        )

        logger.info(
            "Admin released escrow",
            extra={"transaction_id": str(txn.id), "admin_id": str(request.user.pk)},
        )
        txn = transactions_for(request.user).get(pk=txn.pk)
        return Response(TransactionViewSerializer(to_transaction_view(txn)).data)


class SellerBalanceView(APIView):
    """
    Seller earnings summary.

    GET /api/v1/payments/balance/
    """

    permission_classes = [IsAuthenticated, IsSeller]

    @extend_schema(
        operation_id="payments_balance",
        summary="Seller balance",
        responses={200: SellerBalanceSerializer},
        tags=["Payments"],
    )
    def get(self, request):
        return Response(SellerBalanceSerializer(seller_balance(request.user)).data)
