"""Notification protocol.

The core only relies on notify_points_earned / notify_points_redeemed being
called with the right arguments at the right moment; delivery is up to the
backend.

Configuration in settings.py:
    CAFETERIA = {
        "NOTIFICATION_BACKEND": "cafeteria.services.notification.NotificationService",
    }
"""

from decimal import Decimal
from typing import Protocol, runtime_checkable

from cafeteria.models import Order, Student


@runtime_checkable
class NotificationBackend(Protocol):
    """Protocol for student-facing notifications."""

    def notify_points_earned(self, student_id: str, points: int, order_id: str) -> None:
        """Called after points from an order were credited."""
        ...

    def notify_points_redeemed(self, student_id: str, points: int, discount_amount: Decimal) -> None:
        """Called after points were redeemed (discount_amount may be 0.00 for item rewards)."""
        ...

    def notify_order_confirmed(self, order: Order) -> None:
        ...

    def notify_order_ready(self, order: Order) -> None:
        ...

    def notify_order_status_update(self, order: Order, message: str | None = None) -> None:
        ...

    def notify_student_welcome(self, student: Student) -> None:
        ...
