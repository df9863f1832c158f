"""Serializers for the booking domain."""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model  # type: ignore

from rest_framework import serializers  # type: ignore

from .models import Booking


class BookingCreateSerializer(serializers.Serializer):
    """Booking request made by the authenticated guest."""

    host = serializers.PrimaryKeyRelatedField(queryset=get_user_model().objects.all())
    listing_id = serializers.CharField(max_length=64)
    listing_title = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    check_in = serializers.DateTimeField()
    check_out = serializers.DateTimeField(required=False, allow_null=True, default=None)
    guests_count = serializers.IntegerField(min_value=1, default=1)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))
    base_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True, default=None
    )
    service_fee = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0"), default=Decimal("0")
    )
    currency = serializers.ChoiceField(choices=["PHP", "USD", "EUR"], default="PHP")
    payment_method = serializers.ChoiceField(
        choices=Booking.PaymentMethod.choices, default=Booking.PaymentMethod.PAYPAL
    )
    cancellation_policy = serializers.ChoiceField(
        choices=Booking.CancellationPolicy.choices, default=Booking.CancellationPolicy.MODERATE
    )

    def validate(self, attrs):  # type: ignore
        check_out = attrs.get("check_out")
        if check_out is not None and check_out <= attrs["check_in"]:
            raise serializers.ValidationError("Check-out must be after check-in.")
        request = self.context.get("request")
        if request is not None and attrs["host"].pk == request.user.pk:
            raise serializers.ValidationError("You cannot book your own listing.")
        return attrs


class BookingSerializer(serializers.ModelSerializer):
    """Detailed booking representation."""

    guest_id = serializers.ReadOnlyField(source="guest.id")
    host_id = serializers.ReadOnlyField(source="host.id")

    class Meta:
        model = Booking
        fields = [
            "id",
            "guest_id",
            "host_id",
            "listing_id",
            "listing_title",
            "check_in",
            "check_out",
            "guests_count",
            "status",
            "payment_method",
            "payment_status",
            "cancellation_policy",
            "base_price",
            "service_fee",
            "total_amount",
            "currency",
            "auto_confirmed",
            "auto_confirm_reason",
            "rejection_reason",
            "cancellation_reason",
            "cancelled_by",
            "confirmed_at",
            "cancelled_at",
            "completed_at",
            "refund_amount",
            "admin_deduction",
            "cancellation_fee",
            "refund_percentage",
            "refund_policy_description",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingReasonSerializer(serializers.Serializer):
    """Optional free-text reason for reject and cancel actions."""

    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
