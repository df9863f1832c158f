"""Finances app package: booking payouts and user wallets."""
