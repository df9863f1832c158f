"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "listing_title",
        "guest",
        "host",
        "status",
        "payment_status",
        "check_in",
        "check_out",
        "total_amount",
        "auto_confirmed",
        "created_at",
    )
    list_filter = ("status", "payment_status", "payment_method", "cancellation_policy", "auto_confirmed")
    search_fields = ("id", "listing_id", "listing_title", "guest__email", "host__email")
    # Status only changes through the booking commands
    readonly_fields = (
        "status",
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
    )
