"""URL routing for the finance domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import PayoutViewSet, WalletViewSet

router = DefaultRouter()
router.register(r"payouts", PayoutViewSet, basename="payout")
router.register(r"wallet", WalletViewSet, basename="wallet")

urlpatterns = [
    path("", include(router.urls)),
]
