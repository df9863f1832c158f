"""API views for payouts and wallets.

Hosts see the payouts owed to them; staff see every payout and release
ON_HOLD payouts to the host's wallet. Every user can read their own wallet.
"""

from __future__ import annotations

import logging

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .models import Payout, Wallet
from .serializers import PayoutSerializer, WalletSerializer
from .services import PayoutStateError, release_payout

logger = logging.getLogger(__name__)


class PayoutViewSet(viewsets.ReadOnlyModelViewSet):
    """Payouts visible to their host, or to staff."""

    queryset = Payout.objects.select_related("booking", "host").all()
    serializer_class = PayoutSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            status_filter = self.request.query_params.get("status")
            return qs.filter(status=status_filter) if status_filter else qs
        return qs.filter(host=user)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAdminUser])
    def release(self, request, pk=None):  # type: ignore
        payout: Payout = self.get_object()  # type: ignore
        try:
            payout = release_payout(payout.pk, request.user)
        except PayoutStateError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(PayoutSerializer(payout).data, status=status.HTTP_200_OK)


class WalletViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """The authenticated user's wallet."""

    serializer_class = WalletSerializer
    permission_classes = [permissions.IsAuthenticated]

    def list(self, request, *args, **kwargs):  # type: ignore
        wallet, _ = Wallet.objects.get_or_create(user=request.user)
        return Response(self.get_serializer(wallet).data)
