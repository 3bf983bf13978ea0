"""
In-app notification backend.

Keeps a per-student inbox in memory. Each student keeps at most
MAX_NOTIFICATIONS_PER_STUDENT notifications (oldest dropped first) and
perform_maintenance_cleanup() drops anything older than
NOTIFICATION_RETENTION_DAYS.

Configuration in settings.py:
    CAFETERIA = {
        "NOTIFICATION_BACKEND": "cafeteria.services.notification.NotificationService",
    }
"""

import logging
import threading
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from cafeteria.conf import cafeteria_settings
from cafeteria.models import Order, Student
from cafeteria.money import format_money

logger = logging.getLogger(__name__)


class NotificationType(models.TextChoices):
    ORDER_STATUS = "order_status", _("Order status")
    ORDER_READY = "order_ready", _("Order ready")
    ORDER_CONFIRMED = "order_confirmed", _("Order confirmed")
    POINTS_EARNED = "points_earned", _("Points earned")
    POINTS_REDEEMED = "points_redeemed", _("Points redeemed")
    WELCOME = "welcome", _("Welcome")
    GENERAL = "general", _("General")


def generate_notification_id() -> str:
    return "NOTIF_" + uuid.uuid4().hex[:8].upper()


@dataclass
class Notification:
    student_id: str
    title: str
    message: str
    notification_type: NotificationType
    notification_id: str = field(default_factory=generate_notification_id)
    timestamp: datetime = field(default_factory=timezone.now)
    read: bool = False

    def __str__(self):
        return f"[{self.notification_type.label}] {self.title}: {self.message}"

    def mark_as_read(self) -> None:
        self.read = True


class NotificationService:
    """In-memory implementation of the NotificationBackend protocol."""

    def __init__(self):
        self._lock = threading.RLock()
        self._by_student: dict[str, list[Notification]] = {}
        self._by_id: dict[str, Notification] = {}

    # ------------------------------------------------------------------
    # NotificationBackend
    # ------------------------------------------------------------------

    def notify_order_status_update(self, order: Order, message: str | None = None) -> None:
        if order is None:
            return
        text = message or f"Your order {order.order_id} is now {order.status.label}"
        self._create(order.student_id, "Order Status Update", text, NotificationType.ORDER_STATUS)

    def notify_order_ready(self, order: Order) -> None:
        if order is None:
            return
        self._create(
            order.student_id,
            "Order Ready for Pickup!",
            f"Your order {order.order_id} is ready for pickup. "
            "Please collect it from the cafeteria counter.",
            NotificationType.ORDER_READY,
        )

    def notify_order_confirmed(self, order: Order) -> None:
        if order is None:
            return
        self._create(
            order.student_id,
            "Order Confirmed",
            f"Your order {order.order_id} has been confirmed. Total: {order.formatted_total}. "
            f"You earned {order.loyalty_points_earned} loyalty points!",
            NotificationType.ORDER_CONFIRMED,
        )

    def notify_points_earned(self, student_id: str, points: int, order_id: str) -> None:
        if student_id is None or points <= 0:
            return
        self._create(
            student_id,
            "Loyalty Points Earned!",
            f"You earned {points} loyalty points from order {order_id}. "
            "Keep collecting points for great rewards!",
            NotificationType.POINTS_EARNED,
        )

    def notify_points_redeemed(self, student_id: str, points: int, discount_amount: Decimal) -> None:
        if student_id is None or points <= 0:
            return
        self._create(
            student_id,
            "Loyalty Points Redeemed",
            f"You redeemed {points} loyalty points for {format_money(discount_amount)} discount. "
            "Thank you for your loyalty!",
            NotificationType.POINTS_REDEEMED,
        )

    def notify_student_welcome(self, student: Student) -> None:
        if student is None:
            return
        self._create(
            student.student_id,
            "Welcome to the Cafeteria System!",
            f"Welcome {student.name}! Your account has been created successfully. "
            "Start ordering to earn loyalty points and enjoy great rewards!",
            NotificationType.WELCOME,
        )

    def send_general_notification(self, student_id: str, title: str, message: str) -> Notification | None:
        return self._create(student_id, title, message, NotificationType.GENERAL)

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    def get_notifications_for_student(self, student_id: str) -> list[Notification]:
        """Most recent first."""
        if student_id is None:
            return []
        with self._lock:
            notifications = list(self._by_student.get(student_id, ()))
        return sorted(notifications, key=lambda n: n.timestamp, reverse=True)

    def get_unread_notifications_for_student(self, student_id: str) -> list[Notification]:
        return [n for n in self.get_notifications_for_student(student_id) if not n.read]

    def mark_notification_as_read(self, notification_id: str, student_id: str) -> bool:
        """Only the owning student can mark a notification."""
        with self._lock:
            notification = self._by_id.get(notification_id)
            if notification is None or notification.student_id != student_id:
                return False
            notification.mark_as_read()
            return True

    def mark_all_notifications_as_read(self, student_id: str) -> int:
        """Returns how many notifications changed."""
        marked = 0
        with self._lock:
            for notification in self._by_student.get(student_id, ()):
                if not notification.read:
                    notification.mark_as_read()
                    marked += 1
        return marked

    def clear_old_notifications(self, student_id: str, days_old: int) -> int:
        """Drop a student's notifications older than days_old. Returns the number dropped."""
        if student_id is None or days_old <= 0:
            return 0

        cutoff = timezone.now() - timedelta(days=days_old)
        with self._lock:
            notifications = self._by_student.get(student_id, [])
            old = [n for n in notifications if n.timestamp < cutoff]
            if not old:
                return 0
            self._by_student[student_id] = [n for n in notifications if n.timestamp >= cutoff]
            for notification in old:
                self._by_id.pop(notification.notification_id, None)
        return len(old)

    def perform_maintenance_cleanup(self) -> int:
        """Apply the retention period to every inbox."""
        days = cafeteria_settings.NOTIFICATION_RETENTION_DAYS
        with self._lock:
            student_ids = list(self._by_student)
        cleaned = sum(self.clear_old_notifications(student_id, days) for student_id in student_ids)
        if cleaned:
            logger.info("Notification cleanup removed %s notifications", cleaned)
        return cleaned

    def get_notification_count_for_student(self, student_id: str) -> int:
        with self._lock:
            return len(self._by_student.get(student_id, ()))

    def get_unread_notification_count_for_student(self, student_id: str) -> int:
        return len(self.get_unread_notifications_for_student(student_id))

    def get_total_notification_count(self) -> int:
        with self._lock:
            return len(self._by_id)

    def get_notification_statistics(self) -> dict:
        with self._lock:
            notifications = list(self._by_id.values())
            students = sum(1 for inbox in self._by_student.values() if inbox)
        return {
            "total": len(notifications),
            "students": students,
            "unread": sum(1 for n in notifications if not n.read),
            "by_type": dict(Counter(n.notification_type for n in notifications)),
        }

    def clear_all_notifications(self) -> None:
        with self._lock:
            self._by_student.clear()
            self._by_id.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _create(
        self,
        student_id: str,
        title: str,
        message: str,
        notification_type: NotificationType,
    ) -> Notification | None:
        if student_id is None:
            return None

        notification = Notification(
            student_id=student_id,
            title=title,
            message=message,
            notification_type=notification_type,
        )
        with self._lock:
            self._by_id[notification.notification_id] = notification
            inbox = self._by_student.setdefault(student_id, [])
            inbox.append(notification)
            self._trim(inbox)

        logger.debug("Notification %s for %s: %s", notification.notification_id, student_id, title)
        return notification

    def _trim(self, inbox: list[Notification]) -> None:
        limit = cafeteria_settings.MAX_NOTIFICATIONS_PER_STUDENT
        if len(inbox) <= limit:
            return
        inbox.sort(key=lambda n: n.timestamp)
        while len(inbox) > limit:
            dropped = inbox.pop(0)
            self._by_id.pop(dropped.notification_id, None)
