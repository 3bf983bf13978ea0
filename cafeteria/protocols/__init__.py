"""Cafeteria protocols."""

from cafeteria.protocols.repositories import (
    MenuRepository,
    OrderRepository,
    UserRepository,
)
from cafeteria.protocols.notifications import NotificationBackend

__all__ = [
    # Storage
    "UserRepository",
    "OrderRepository",
    "MenuRepository",
    # Notifications
    "NotificationBackend",
]
