"""Notifications app package.

Delivers booking messages to guests and hosts by email and keeps an in-app
copy of every message the user can list and mark as read.
"""
