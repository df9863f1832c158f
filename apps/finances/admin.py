"""Admin registration for payouts and wallets."""

from __future__ import annotations

from django.contrib import admin

from .models import Payout, Wallet, WalletTransaction


@admin.register(Payout)
class PayoutAdmin(admin.ModelAdmin):
    list_display = ("booking", "host", "status", "amount", "currency", "due_date", "released_at")
    list_filter = ("status", "payment_method")
    search_fields = ("booking__id", "host__email")
    readonly_fields = ("status", "refund_amount", "refunded_at", "released_at", "released_by", "created_at", "updated_at")


class WalletTransactionInline(admin.TabularInline):
    model = WalletTransaction
    extra = 0
    can_delete = False
    readonly_fields = ("type", "amount", "balance_before", "balance_after", "description", "booking", "payout", "created_at")

    def has_add_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ("user", "balance", "currency", "updated_at")
    search_fields = ("user__email", "user__username")
    readonly_fields = ("balance",)
    inlines = [WalletTransactionInline]
