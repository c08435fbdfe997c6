"""
API views for return requests.

Endpoints:
    GET  /api/v1/returns/ - List visible return requests
    POST /api/v1/returns/ - Buyer opens a request
    GET  /api/v1/returns/{id}/ - Request detail
    PUT  /api/v1/returns/{id}/seller-response/ - Seller responds
    PUT  /api/v1/returns/{id}/admin-decision/ - Admin decides
    POST /api/v1/returns/{id}/settle-clawback/ - Admin settles a clawback

An approval after escrow release answers 409 POST_RELEASE_REFUND; the
request is saved flagged for manual clawback before the error is returned.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.pagination import CreatedAtCursorPagination
from core.permissions import IsMarketplaceAdmin, IsSeller
from returns.selectors import get_return_for, returns_for
from returns.serializers import (
    AdminDecisionSerializer,
    ReturnRequestCreateSerializer,
    ReturnRequestSerializer,
    SellerResponseSerializer,
)
from returns.services import ReturnResolver
from returns.state_machines import ReturnStatus


class ReturnRequestListCreateView(APIView):
    """
    GET lists requests visible to the caller, newest first.
    POST opens a new request (buyers).
    """

    permission_classes = [IsAuthenticated]
    pagination_class = CreatedAtCursorPagination

    @extend_schema(
        operation_id="returns_list",
        summary="List return requests",
        parameters=[
            OpenApiParameter(
                name="status",
                type=str,
                enum=ReturnStatus.values,
                required=False,
                description="Filter by request status",
            ),
        ],
        responses={200: ReturnRequestSerializer(many=True)},
        tags=["Returns"],
    )
    def get(self, request):
        queryset = returns_for(request.user, status=request.query_params.get("status"))
        paginator = self.pagination_class()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(ReturnRequestSerializer(page, many=True).data)

    @extend_schema(
        operation_id="returns_create",
        summary="Open a return request",
        request=ReturnRequestCreateSerializer,
        responses={
            201: ReturnRequestSerializer,
            400: OpenApiResponse(description="Not eligible, attempt limit or invalid amount"),
            403: OpenApiResponse(description="Not the buyer"),
            409: OpenApiResponse(description="An active request already exists"),
        },
        tags=["Returns"],
    )
    def post(self, request):
        serializer = ReturnRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        return_request = ReturnResolver().open_request(request.user, serializer.to_params())
        return Response(
            ReturnRequestSerializer(return_request).data,
            status=status.HTTP_201_CREATED,
        )


class ReturnRequestDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="returns_retrieve",
        summary="Return request detail",
        responses={200: ReturnRequestSerializer, 404: OpenApiResponse(description="Not found")},
        tags=["Returns"],
    )
    def get(self, request, pk):
        return Response(ReturnRequestSerializer(get_return_for(request.user, pk)).data)


class SellerResponseView(APIView):
    """Seller approves or rejects; advisory only, the admin decides."""

    permission_classes = [IsAuthenticated, IsSeller]

    @extend_schema(
        operation_id="returns_seller_response",
        summary="Seller response",
        request=SellerResponseSerializer,
        responses={
            200: ReturnRequestSerializer,
            400: OpenApiResponse(description="Already responded or invalid amount"),
            403: OpenApiResponse(description="Not this request's seller"),
            409: OpenApiResponse(description="Request changed concurrently"),
        },
        tags=["Returns"],
    )
    def put(self, request, pk):
        serializer = SellerResponseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        return_request = ReturnResolver().respond_as_seller(request.user, pk, serializer.to_params())
        return Response(ReturnRequestSerializer(return_request).data)


class AdminDecisionView(APIView):
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @extend_schema(
        operation_id="returns_admin_decision",
        summary="Admin decision",
        description=(
            "Approving while the money is in escrow refunds it and cancels the "
            "order/booking. Approving after release flags the request for a "
            "manual clawback and answers 409 POST_RELEASE_REFUND."
        ),
        request=AdminDecisionSerializer,
        responses={
            200: ReturnRequestSerializer,
            400: OpenApiResponse(description="Invalid step or amount"),
            409: OpenApiResponse(description="Post-release refund or concurrent change"),
        },
        tags=["Returns"],
    )
    def put(self, request, pk):
        serializer = AdminDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        return_request = ReturnResolver().adjudicate(request.user, pk, serializer.to_params())
        return Response(ReturnRequestSerializer(return_request).data)


class SettleClawbackView(APIView):
    permission_classes = [IsAuthenticated, IsMarketplaceAdmin]

    @extend_schema(
        operation_id="returns_settle_clawback",
        summary="Settle manual clawback",
        request=None,
        responses={
            200: ReturnRequestSerializer,
            409: OpenApiResponse(description="Request is not awaiting a clawback"),
        },
        tags=["Returns"],
    )
    def post(self, request, pk):
        return_request = ReturnResolver().settle_clawback(request.user, pk)
        return Response(ReturnRequestSerializer(return_request).data)
