"""
Cafeteria configuration.

Usage in settings.py:
    CAFETERIA = {
        "CURRENCY": "EGP",
        "MIN_REDEMPTION_POINTS": 10,
        "ORDER_REPOSITORY": "cafeteria.adapters.memory.InMemoryOrderRepository",
    }
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from django.conf import settings


@dataclass
class CafeteriaSettings:
    """Cafeteria configuration settings."""

    # Display currency code ("EGP 12.50")
    CURRENCY: str = "EGP"

    # Loyalty policy: 1 point per POINTS_EARN_UNIT spent, DISCOUNT_PER_POINT off per point
    POINTS_EARN_UNIT: Decimal = Decimal("10")
    DISCOUNT_PER_POINT: Decimal = Decimal("0.20")
    MIN_REDEMPTION_POINTS: int = 10

    # Order rules
    MAX_ITEMS_PER_ORDER: int = 50
    BASE_PREPARATION_MINUTES: int = 15
    PREPARATION_MINUTES_PER_ITEM: int = 2

    # In-app notifications
    MAX_NOTIFICATIONS_PER_STUDENT: int = 100
    NOTIFICATION_RETENTION_DAYS: int = 30

    # Storage and notification backends (dotted paths)
    USER_REPOSITORY: str = "cafeteria.adapters.memory.InMemoryUserRepository"
    ORDER_REPOSITORY: str = "cafeteria.adapters.memory.InMemoryOrderRepository"
    MENU_REPOSITORY: str = "cafeteria.adapters.memory.InMemoryMenuRepository"
    NOTIFICATION_BACKEND: str = "cafeteria.services.notification.NotificationService"


def get_cafeteria_settings() -> CafeteriaSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "CAFETERIA", {})
    return CafeteriaSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_cafeteria_settings(), name)


cafeteria_settings = _LazySettings()
