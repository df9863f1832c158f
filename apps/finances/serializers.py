"""Serializers for the finance domain (payouts and wallets)."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Payout, Wallet, WalletTransaction


class PayoutSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payout
        fields = [
            "id",
            "booking",
            "host",
            "guest",
            "status",
            "amount",
            "service_fee",
            "total_amount",
            "currency",
            "payment_method",
            "due_date",
            "refund_amount",
            "refunded_at",
            "released_at",
            "released_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class WalletTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletTransaction
        fields = [
            "id",
            "type",
            "amount",
            "balance_before",
            "balance_after",
            "description",
            "booking",
            "payout",
            "created_at",
        ]
        read_only_fields = fields


class WalletSerializer(serializers.ModelSerializer):
    """Wallet with its most recent transactions."""

    recent_transactions = serializers.SerializerMethodField()

    class Meta:
        model = Wallet
        fields = ["id", "balance", "currency", "updated_at", "recent_transactions"]
        read_only_fields = fields

    def get_recent_transactions(self, obj: Wallet):  # type: ignore
        return WalletTransactionSerializer(obj.transactions.all()[:20], many=True).data
