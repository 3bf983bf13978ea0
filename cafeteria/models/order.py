"""
Order model (cart -> priced -> status-tracked).

Totals are derived values, recomputed after every item mutation and every
discount application:

    total_amount = max(0, sum(item.subtotal) - discount_amount)
    loyalty_points_earned = floor(total_amount / POINTS_EARN_UNIT)

Status transitions are not enforced here. ALLOWED_TRANSITIONS describes the
lifecycle and is enforced by OrderService:

    PENDING -> CONFIRMED -> PREPARING -> READY -> COMPLETED
    PENDING | CONFIRMED -> CANCELLED
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from cafeteria.exceptions import ValidationError
from cafeteria.models.menu_item import MenuItem
from cafeteria.money import ZERO, format_money, points_for_amount, to_decimal

logger = logging.getLogger(__name__)


class OrderStatus(models.TextChoices):
    PENDING = "pending", _("Pending")
    CONFIRMED = "confirmed", _("Confirmed")
    PREPARING = "preparing", _("Preparing")
    READY = "ready", _("Ready for Pickup")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")

    @classmethod
    def cancellable(cls):
        return [cls.PENDING, cls.CONFIRMED]

    @classmethod
    def terminal(cls):
        return [cls.COMPLETED, cls.CANCELLED]


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


def generate_order_id() -> str:
    return "ORD-" + uuid.uuid4().hex[:8].upper()


class OrderItem:
    """A menu item plus a quantity within an order."""

    def __init__(self, menu_item: MenuItem, quantity: int):
        self.menu_item = menu_item
        self.quantity = quantity

    def __repr__(self):
        return f"OrderItem(item_id={self.item_id!r}, quantity={self._quantity}, subtotal={self.subtotal})"

    def __str__(self):
        return f"{self._quantity}x {self.menu_item.name} - {self.formatted_subtotal}"

    @property
    def item_id(self) -> str:
        return self.menu_item.item_id

    @property
    def quantity(self) -> int:
        return self._quantity

    @quantity.setter
    def quantity(self, quantity: int):
        if quantity <= 0:
            raise ValidationError("INVALID_QUANTITY", quantity=quantity)
        self._quantity = quantity
        self.subtotal = self.menu_item.price * quantity

    @property
    def formatted_subtotal(self) -> str:
        return format_money(self.subtotal)


@dataclass(eq=False)
class Order:
    """
    Student order.

    student_id references the owner; the order does not own the student.
    Not thread-safe: callers serialize mutations per order.
    """

    student_id: str
    order_id: str = field(default_factory=generate_order_id)
    status: OrderStatus = OrderStatus.PENDING
    notes: str = ""
    order_time: datetime = field(default_factory=timezone.now)
    status_updated_time: datetime = field(default_factory=timezone.now)

    # Derived / set through the methods below
    total_amount: Decimal = field(default=ZERO, init=False)
    loyalty_points_earned: int = field(default=0, init=False)
    loyalty_points_redeemed: int = field(default=0, init=False)
    discount_amount: Decimal = field(default=ZERO, init=False)
    _items: list[OrderItem] = field(default_factory=list, init=False, repr=False)

    def __str__(self):
        return (
            f"Order {self.order_id} ({self.student_id}): {len(self._items)} items, "
            f"{self.formatted_total}, {self.status.label}"
        )

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    @property
    def items(self) -> tuple[OrderItem, ...]:
        return tuple(self._items)

    def get_item(self, item_id: str) -> OrderItem | None:
        for item in self._items:
            if item.item_id == item_id:
                return item
        return None

    def add_item(self, menu_item: MenuItem, quantity: int) -> OrderItem:
        """
        Add quantity of menu_item. An existing line for the same item has its
        quantity increased instead of a new line being appended.

        Raises:
            ValidationError: If menu_item is None, quantity <= 0 or the item
                is unavailable
        """
        if menu_item is None:
            raise ValidationError("INVALID_MENU_ITEM")
        if quantity <= 0:
            raise ValidationError("INVALID_QUANTITY", quantity=quantity)
        if not menu_item.available:
            raise ValidationError(
                "MENU_ITEM_UNAVAILABLE",
                message=f"Menu item is not available: {menu_item.name}",
                item_id=menu_item.item_id,
            )

        line = self.get_item(menu_item.item_id)
        if line is not None:
            line.quantity += quantity
        else:
            line = OrderItem(menu_item, quantity)
            self._items.append(line)

        self.calculate_totals()
        return line

    def remove_item(self, item_id: str) -> bool:
        remaining = [item for item in self._items if item.item_id != item_id]
        if len(remaining) == len(self._items):
            return False

        self._items = remaining
        self.calculate_totals()
        return True

    def update_item_quantity(self, item_id: str, new_quantity: int) -> bool:
        """Set the quantity of a line. new_quantity <= 0 removes the line."""
        if new_quantity <= 0:
            return self.remove_item(item_id)

        line = self.get_item(item_id)
        if line is None:
            return False

        line.quantity = new_quantity
        self.calculate_totals()
        return True

    def is_empty(self) -> bool:
        return not self._items

    @property
    def total_item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def unique_menu_items(self) -> list[MenuItem]:
        return [item.menu_item for item in self._items]

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    @property
    def subtotal(self) -> Decimal:
        return sum((item.subtotal for item in self._items), ZERO)

    def calculate_totals(self) -> None:
        subtotal = self.subtotal
        self.total_amount = max(ZERO, subtotal - self.discount_amount)
        self.loyalty_points_earned = points_for_amount(self.total_amount)

        logger.debug(
            "Order %s totals: subtotal=%s discount=%s total=%s points=%s",
            self.order_id,
            subtotal,
            self.discount_amount,
            self.total_amount,
            self.loyalty_points_earned,
        )

    def apply_loyalty_discount(self, points_to_redeem: int, discount_value) -> bool:
        """
        Record a loyalty redemption on the order.

        Does not check the student's balance (LoyaltyService does).

        Returns:
            False (nothing changed) if points_to_redeem <= 0 or discount_value <= 0
        """
        if points_to_redeem <= 0 or discount_value is None:
            return False
        discount_value = to_decimal(discount_value)
        if discount_value <= 0:
            return False

        self.loyalty_points_redeemed = points_to_redeem
        self.discount_amount = discount_value
        self.calculate_totals()
        return True

    @property
    def formatted_total(self) -> str:
        return format_money(self.total_amount)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def update_status(self, new_status: OrderStatus) -> None:
        self.status = new_status
        self.status_updated_time = timezone.now()

    def can_be_cancelled(self) -> bool:
        return self.status in OrderStatus.cancellable()

    def is_completed(self) -> bool:
        return self.status in OrderStatus.terminal()

    def set_notes(self, notes: str | None) -> None:
        self.notes = notes or ""
