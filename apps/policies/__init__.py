"""Policies app package: operator-tunable refund and auto-confirm settings."""
