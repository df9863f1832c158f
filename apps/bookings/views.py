"""API views for the booking domain."""

from __future__ import annotations

import logging

from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.application.message_bus import message_bus

from apps.finances.services import InsufficientFundsError

from .application.command_handlers import (
    CancelBookingCommand,
    CompleteBookingCommand,
    ConfirmBookingCommand,
    CreateBookingCommand,
    RejectBookingCommand,
)
from .application.queries import get_auto_confirm_status, get_refund_quote
from .domain.entities import CancelledBy
from .domain.errors import BookingError, BookingNotFoundError, InvalidTransitionError
from .filters import BookingFilter
from .models import Booking
from .serializers import BookingCreateSerializer, BookingReasonSerializer, BookingSerializer

logger = logging.getLogger(__name__)


def _is_staff(user) -> bool:
    return bool(getattr(user, "is_staff", False) or getattr(user, "is_superuser", False))


class IsBookingStakeholder(permissions.BasePermission):
    """Guest, host and staff can access a booking."""

    def has_object_permission(self, request, view, obj: Booking):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if _is_staff(user):
            return True
        return user.pk in (obj.guest_id, obj.host_id)


def _error_response(exc: Exception) -> Response:
    if isinstance(exc, BookingNotFoundError):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, InvalidTransitionError):
        return Response({"detail": exc.user_message}, status=status.HTTP_400_BAD_REQUEST)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Create bookings and drive them through their lifecycle."""

    queryset = Booking.objects.select_related("guest", "host").all()
    permission_classes = [permissions.IsAuthenticated, IsBookingStakeholder]
    filter_backends = [DjangoFilterBackend]
    filterset_class = BookingFilter

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action in ("reject", "cancel"):
            return BookingReasonSerializer
        return BookingSerializer

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if _is_staff(user):
            return qs
        return qs.filter(Q(guest=user) | Q(host=user))

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        host = data.pop("host")

        command = CreateBookingCommand(guest_id=request.user.pk, host_id=host.pk, **data)
        try:
            booking = message_bus.handle_command(command)
        except InsufficientFundsError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return self._booking_response(booking.id, status.HTTP_201_CREATED)

    # ===== Transitions =====

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        if not self._is_host(request.user, booking):
            return Response({"detail": "Only the host can approve a booking."}, status=status.HTTP_403_FORBIDDEN)
        return self._run(ConfirmBookingCommand(booking_id=booking.id))

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        if not self._is_host(request.user, booking):
            return Response({"detail": "Only the host can decline a booking."}, status=status.HTTP_403_FORBIDDEN)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._run(RejectBookingCommand(booking_id=booking.id, reason=serializer.validated_data["reason"]))

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        user = request.user
        if booking.guest_id == user.pk:
            cancelled_by = CancelledBy.GUEST
        elif booking.host_id == user.pk:
            cancelled_by = CancelledBy.HOST
        elif _is_staff(user):
            cancelled_by = CancelledBy.SYSTEM
        else:
            return Response(status=status.HTTP_403_FORBIDDEN)

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._run(
            CancelBookingCommand(
                booking_id=booking.id,
                cancelled_by=cancelled_by.value,
                reason=serializer.validated_data["reason"],
            )
        )

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        if not self._is_host(request.user, booking):
            return Response({"detail": "Only the host can complete a booking."}, status=status.HTTP_403_FORBIDDEN)
        return self._run(CompleteBookingCommand(booking_id=booking.id))

    # ===== Queries =====

    @action(detail=True, methods=["get"], url_path="refund-quote")
    def refund_quote(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        try:
            breakdown, can_cancel = get_refund_quote(booking.id, timezone.now())
        except BookingError as exc:
            return _error_response(exc)
        return Response({"can_cancel": can_cancel, **breakdown.to_dict()})

    @action(detail=True, methods=["get"], url_path="auto-confirm")
    def auto_confirm(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        eligibility = get_auto_confirm_status(booking.id, timezone.now())
        return Response(
            {
                "eligible": eligibility.eligible,
                "reason": eligibility.reason,
                "remaining_hours": eligibility.remaining_hours,
                "eligible_at": eligibility.eligible_at,
            }
        )

    # ===== Helpers =====

    @staticmethod
    def _is_host(user, booking: Booking) -> bool:
        return booking.host_id == user.pk or _is_staff(user)

    def _run(self, command) -> Response:
        try:
            booking = message_bus.handle_command(command)
        except BookingError as exc:
            return _error_response(exc)
        return self._booking_response(booking.id)

    def _booking_response(self, booking_id, status_code=status.HTTP_200_OK) -> Response:
        instance = Booking.objects.select_related("guest", "host").get(pk=booking_id)
        data = BookingSerializer(instance, context=self.get_serializer_context()).data
        return Response(data, status=status_code)
