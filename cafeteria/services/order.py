"""Order service - cart editing, loyalty discounts and the status lifecycle."""

import logging
from datetime import date

from cafeteria import signals
from cafeteria.conf import cafeteria_settings
from cafeteria.exceptions import ValidationError
from cafeteria.models import MenuItem, Order, OrderStatus, can_transition

logger = logging.getLogger(__name__)


# Student-facing message per new status (CONFIRMED and READY have their own notifications)
_STATUS_MESSAGES = {
    OrderStatus.PREPARING: "Your order is now being prepared",
    OrderStatus.COMPLETED: "Thank you! Your order has been completed",
    OrderStatus.CANCELLED: "Your order has been cancelled",
}


class OrderService:
    """
    Service for order operations.

    Orders can only be edited while PENDING. Loyalty points applied to an
    order are redeemed when it is confirmed, and the confirmed total earns
    points for the student.
    """

    def __init__(self, order_repository, loyalty_service, notifier):
        self.order_repository = order_repository
        self.loyalty_service = loyalty_service
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Cart
    # ------------------------------------------------------------------

    def create_order(self, student_id: str) -> Order:
        """
        Create an empty PENDING order.

        Raises:
            ValidationError: If student_id is blank
        """
        if not student_id or not student_id.strip():
            raise ValidationError("INVALID_STUDENT", message="Student ID cannot be null or empty")

        order = self.order_repository.save(Order(student_id=student_id.strip()))
        logger.info("Created order %s for student %s", order.order_id, order.student_id)
        return order

    def add_item_to_order(self, order_id: str, menu_item: MenuItem, quantity: int) -> Order:
        """
        Add quantity of a menu item to a pending order.

        Args:
            order_id: Order ID
            menu_item: Item to add (must be available)
            quantity: Units to add (must be positive)

        Returns:
            Updated order

        Raises:
            ValidationError: ORDER_NOT_FOUND, ORDER_NOT_MODIFIABLE,
                ORDER_TOO_LARGE, or an invalid item/quantity
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

        order = self._get_modifiable_order(order_id)
        self._check_size(order.total_item_count + quantity)

        order.add_item(menu_item, quantity)
        return self.order_repository.update(order)

    def remove_item_from_order(self, order_id: str, item_id: str) -> Order:
        if item_id is None:
            raise ValidationError("INVALID_MENU_ITEM", message="Item ID cannot be null")

        order = self._get_modifiable_order(order_id)
        order.remove_item(item_id)
        return self.order_repository.update(order)

    def update_item_quantity(self, order_id: str, item_id: str, new_quantity: int) -> Order:
        """
        Set the quantity of an order line. 0 removes the line.

        Raises:
            ValidationError: If new_quantity is negative, or the order is
                missing, not PENDING, or would grow past MAX_ITEMS_PER_ORDER
        """
        if item_id is None:
            raise ValidationError("INVALID_MENU_ITEM", message="Item ID cannot be null")
        if new_quantity < 0:
            raise ValidationError("INVALID_QUANTITY", message="Quantity cannot be negative")

        order = self._get_modifiable_order(order_id)
        if new_quantity == 0:
            order.remove_item(item_id)
        else:
            line = order.get_item(item_id)
            current = line.quantity if line else 0
            self._check_size(order.total_item_count - current + new_quantity)
            order.update_item_quantity(item_id, new_quantity)

        return self.order_repository.update(order)

    def apply_loyalty_discount(self, order_id: str, points_to_redeem: int) -> Order:
        """
        Reserve loyalty points as a discount on a pending order.

        The points are only taken from the student's account when the order
        is confirmed.

        Raises:
            ValidationError: If points <= 0, the order is empty or already
                has a redemption, or the student cannot redeem the points
        """
        if points_to_redeem <= 0:
            raise ValidationError("LOYALTY_INVALID_POINTS", message="Points to redeem must be positive")

        order = self._get_modifiable_order(order_id)
        if order.is_empty():
            raise ValidationError("ORDER_EMPTY", message="Cannot apply discount to empty order")
        if order.loyalty_points_redeemed > 0:
            raise ValidationError("LOYALTY_ALREADY_REDEEMED", order_id=order.order_id)
        if not self.loyalty_service.can_redeem_points(order.student_id, points_to_redeem):
            raise ValidationError(
                "LOYALTY_INSUFFICIENT_POINTS",
                message="Student does not have enough loyalty points",
                student_id=order.student_id,
                points=points_to_redeem,
            )

        discount = self.loyalty_service.calculate_discount_from_points(points_to_redeem)
        order.apply_loyalty_discount(points_to_redeem, discount)
        logger.info("Order %s: %s points reserved for %s discount", order.order_id, points_to_redeem, discount)
        return self.order_repository.update(order)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def confirm_order(self, order_id: str) -> Order:
        """
        Confirm a pending order.

        Redeems the points reserved on the order, then marks it CONFIRMED
        and awards points for the total. A failed redemption leaves the
        order PENDING.

        Raises:
            ValidationError: ORDER_NOT_FOUND, ORDER_NOT_MODIFIABLE,
                ORDER_EMPTY or LOYALTY_INSUFFICIENT_POINTS
        """
        order = self._get_order_or_raise(order_id)
        if order.status != OrderStatus.PENDING:
            raise ValidationError("ORDER_NOT_MODIFIABLE", message="Only pending orders can be confirmed")
        if order.is_empty():
            raise ValidationError("ORDER_EMPTY", message="Cannot confirm empty order")

        if order.loyalty_points_redeemed > 0:
            self.loyalty_service.redeem_points_for_discount(
                order.student_id,
                order.loyalty_points_redeemed,
                f"Redeemed for order {order.order_id}",
            )

        old_status = order.status
        order.update_status(OrderStatus.CONFIRMED)
        self.loyalty_service.award_points_from_order(order.student_id, order.total_amount, order.order_id)
        order = self.order_repository.update(order)

        self._status_changed(order, old_status)
        self.notifier.notify_order_confirmed(order)
        return order

    def cancel_order(self, order_id: str) -> Order:
        """
        Cancel a PENDING or CONFIRMED order.

        Raises:
            ValidationError: ORDER_NOT_FOUND, or INVALID_STATUS_TRANSITION
                when the order is past CONFIRMED
        """
        order = self._get_order_or_raise(order_id)
        if not order.can_be_cancelled():
            raise ValidationError(
                "INVALID_STATUS_TRANSITION",
                message=f"Order cannot be cancelled in current status: {order.status.label}",
                order_id=order.order_id,
            )

        old_status = order.status
        order.update_status(OrderStatus.CANCELLED)
        order = self.order_repository.update(order)

        self._status_changed(order, old_status)
        self.notifier.notify_order_status_update(order, _STATUS_MESSAGES[OrderStatus.CANCELLED])
        return order

    def update_order_status(self, order_id: str, new_status: OrderStatus) -> Order:
        """
        Move an order along its lifecycle.

        CONFIRMED goes through confirm_order() and CANCELLED through
        cancel_order(), so loyalty side effects always apply.

        Raises:
            ValidationError: ORDER_NOT_FOUND or INVALID_STATUS_TRANSITION
        """
        if new_status is None:
            raise ValidationError("INVALID_STATUS_TRANSITION", message="New status cannot be null")
        try:
            new_status = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(
                "INVALID_STATUS_TRANSITION",
                message=f"Unknown order status: {new_status}",
            ) from None

        order = self._get_order_or_raise(order_id)
        if not can_transition(order.status, new_status):
            logger.warning(
                "Rejected status change for order %s: %s -> %s",
                order.order_id,
                order.status,
                new_status,
            )
            raise ValidationError(
                "INVALID_STATUS_TRANSITION",
                message=f"Invalid status transition from {order.status.name} to {new_status.name}",
                order_id=order.order_id,
            )

        if new_status == OrderStatus.CONFIRMED:
            return self.confirm_order(order_id)
        if new_status == OrderStatus.CANCELLED:
            return self.cancel_order(order_id)

        old_status = order.status
        order.update_status(new_status)
        order = self.order_repository.update(order)

        self._status_changed(order, old_status)
        if new_status == OrderStatus.READY:
            self.notifier.notify_order_ready(order)
        else:
            self.notifier.notify_order_status_update(order, _STATUS_MESSAGES.get(new_status))
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order | None:
        if order_id is None:
            return None
        return self.order_repository.find_by_id(order_id.strip())

    def get_orders_by_student(self, student_id: str) -> list[Order]:
        """Orders of a student, most recent first."""
        if student_id is None:
            return []
        return self.order_repository.find_by_student_id(student_id.strip())

    def get_recent_orders_by_student(self, student_id: str, limit: int) -> list[Order]:
        if student_id is None or limit <= 0:
            return []
        return self.order_repository.find_recent_by_student_id(student_id.strip(), limit)

    def get_orders_by_status(self, status: OrderStatus) -> list[Order]:
        if status is None:
            return []
        return self.order_repository.find_by_status(status)

    def get_pending_orders(self) -> list[Order]:
        return self.order_repository.find_by_status(OrderStatus.PENDING)

    def get_orders_in_preparation(self) -> list[Order]:
        """CONFIRMED and PREPARING orders, oldest first."""
        orders = self.order_repository.find_by_status(OrderStatus.CONFIRMED)
        orders += self.order_repository.find_by_status(OrderStatus.PREPARING)
        return sorted(orders, key=lambda o: o.order_time)

    def get_orders_ready_for_pickup(self) -> list[Order]:
        return self.order_repository.find_by_status(OrderStatus.READY)

    def get_orders_by_date(self, day: date) -> list[Order]:
        if day is None:
            return []
        return self.order_repository.find_by_date(day)

    def get_orders_by_date_range(self, start: date, end: date) -> list[Order]:
        if start is None or end is None:
            return []
        return self.order_repository.find_by_date_range(start, end)

    def get_order_statistics(self) -> dict[OrderStatus, int]:
        """Order count per status."""
        return self.order_repository.count_by_status()

    def get_estimated_preparation_time(self, order_id: str) -> int:
        """Minutes until pickup: base time plus a fixed time per unit. 0 for unknown orders."""
        order = self.get_order(order_id)
        if order is None:
            return 0
        return (
            cafeteria_settings.BASE_PREPARATION_MINUTES
            + order.total_item_count * cafeteria_settings.PREPARATION_MINUTES_PER_ITEM
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _get_order_or_raise(self, order_id: str) -> Order:
        if not order_id or not order_id.strip():
            raise ValidationError("ORDER_NOT_FOUND", message="Order ID cannot be null or empty")

        order = self.get_order(order_id)
        if order is None:
            raise ValidationError("ORDER_NOT_FOUND", message=f"Order not found: {order_id}", order_id=order_id)
        return order

    def _get_modifiable_order(self, order_id: str) -> Order:
        order = self._get_order_or_raise(order_id)
        if order.status != OrderStatus.PENDING:
            raise ValidationError("ORDER_NOT_MODIFIABLE", order_id=order.order_id)
        return order

    def _check_size(self, total_items: int) -> None:
        limit = cafeteria_settings.MAX_ITEMS_PER_ORDER
        if total_items > limit:
            raise ValidationError(
                "ORDER_TOO_LARGE",
                message=f"Order would exceed the maximum of {limit} items",
                limit=limit,
            )

    def _status_changed(self, order: Order, old_status: OrderStatus) -> None:
        logger.info("Order %s: %s -> %s", order.order_id, old_status, order.status)
        signals.order_status_changed.send(
            sender=Order,
            order=order,
            old_status=old_status,
            new_status=order.status,
        )
