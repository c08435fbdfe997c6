"""
API views for order and booking status.

Provides:
- OrderStatusView: GET/PATCH /api/v1/orders/{id}/status/
- BookingStatusView: GET/PATCH /api/v1/bookings/{id}/status/

Errors map to HTTP through core.exception_handler:
    400 InvalidTransitionError, 403 UnauthorizedTransitionError,
    404 FulfillmentNotFoundError, 409 StaleRecordError
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.models import UserRole
from core.exceptions import PermissionDeniedError
from orders.serializers import FulfillmentStatusSerializer, StatusTransitionSerializer
from orders.services import FulfillmentService
from orders.state_machines import FulfillmentKind

_TRANSITION_RESPONSES = {
    200: FulfillmentStatusSerializer,
    400: OpenApiResponse(description="Transition not allowed from the current status"),
    403: OpenApiResponse(description="Role or ownership does not permit this transition"),
    404: OpenApiResponse(description="Record not found"),
    409: OpenApiResponse(description="Record changed concurrently; reload and retry"),
}


class FulfillmentStatusView(APIView):
    """
    Read the status of an order/booking or request a transition.

    GET returns the current status, version and the statuses the caller
    may request next. PATCH requests a change.
    """

    permission_classes = [IsAuthenticated]
    kind: str = ""

    def _render(self, request, record):
        serializer = FulfillmentStatusSerializer(record, context={"role": request.user.role})
        return Response(serializer.data)

    def get(self, request, pk):
        record = FulfillmentService().get(self.kind, pk)
        if request.user.role != UserRole.ADMIN and not record.is_party(request.user):
            raise PermissionDeniedError(
                f"You are not a party to this {self.kind}",
                details={"kind": self.kind, "pk": str(pk)},
            )
        return self._render(request, record)

    def patch(self, request, pk):
        serializer = StatusTransitionSerializer(data=request.data, context={"kind": self.kind})
        serializer.is_valid(raise_exception=True)

        record = FulfillmentService().transition(
            self.kind,
            pk,
            serializer.validated_data["status"],
            request.user,
            expected_version=serializer.validated_data.get("version"),
        )
        return self._render(request, record)


@extend_schema(tags=["Orders"])
class OrderStatusView(FulfillmentStatusView):
    kind = FulfillmentKind.ORDER

    @extend_schema(operation_id="order_status_get", responses={200: FulfillmentStatusSerializer})
    def get(self, request, pk):
        return super().get(request, pk)

    @extend_schema(
        operation_id="order_status_update",
        request=StatusTransitionSerializer,
        responses=_TRANSITION_RESPONSES,
    )
    def patch(self, request, pk):
        return super().patch(request, pk)


@extend_schema(tags=["Bookings"])
class BookingStatusView(FulfillmentStatusView):
    kind = FulfillmentKind.BOOKING

    @extend_schema(operation_id="booking_status_get", responses={200: FulfillmentStatusSerializer})
    def get(self, request, pk):
        return super().get(request, pk)

    @extend_schema(
        operation_id="booking_status_update",
        request=StatusTransitionSerializer,
        responses=_TRANSITION_RESPONSES,
    )
    def patch(self, request, pk):
        return super().patch(request, pk)
