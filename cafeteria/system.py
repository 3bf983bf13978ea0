"""
CafeteriaSystem - wires storage, notifications and services together.

Usage:
    system = CafeteriaSystem.from_settings()
    system.seed_menu()
    order = system.place_order("2023001", [(burger.item_id, 2)], redeem_points=50)
"""

import logging
from decimal import Decimal

from django.utils.module_loading import import_string

from cafeteria.conf import cafeteria_settings
from cafeteria.exceptions import CafeteriaError, ValidationError
from cafeteria.models import MenuCategory, MenuItem, Order
from cafeteria.services.auth import AuthenticationService
from cafeteria.services.loyalty import LoyaltyService
from cafeteria.services.menu import MenuService
from cafeteria.services.order import OrderService

logger = logging.getLogger(__name__)


# name, description, price, category
DEFAULT_MENU = [
    ("Classic Burger", "Juicy beef patty with lettuce, tomato, and our special sauce", "45.00", MenuCategory.MAIN_COURSE),
    ("Cheese Burger", "Classic burger with melted cheese and crispy bacon", "55.00", MenuCategory.MAIN_COURSE),
    ("Deluxe Burger", "Double patty with cheese, bacon, and premium toppings", "65.00", MenuCategory.MAIN_COURSE),
    ("Chicken Wings", "Crispy buffalo wings with ranch dipping sauce", "35.00", MenuCategory.SNACK),
    ("French Fries", "Golden crispy fries with sea salt and ketchup", "25.00", MenuCategory.SNACK),
    ("Cola", "Ice-cold cola, refreshing and classic", "15.00", MenuCategory.DRINK),
    ("Sprite", "Crisp lemon-lime soda, light and refreshing", "15.00", MenuCategory.DRINK),
    ("Water", "Pure bottled water", "8.00", MenuCategory.DRINK),
    ("Tea", "Hot tea, soothing and refreshing", "12.00", MenuCategory.DRINK),
]


class CafeteriaSystem:
    """Facade over the cafeteria services sharing one set of repositories."""

    def __init__(self, user_repository, order_repository, menu_repository, notifier):
        self.user_repository = user_repository
        self.order_repository = order_repository
        self.menu_repository = menu_repository
        self.notifier = notifier

        self.auth = AuthenticationService(user_repository, notifier)
        self.menu = MenuService(menu_repository)
        self.loyalty = LoyaltyService(user_repository, notifier)
        self.orders = OrderService(order_repository, self.loyalty, notifier)

    @classmethod
    def from_settings(cls) -> "CafeteriaSystem":
        """Build a system from the backends named in settings.CAFETERIA."""
        return cls(
            user_repository=import_string(cafeteria_settings.USER_REPOSITORY)(),
            order_repository=import_string(cafeteria_settings.ORDER_REPOSITORY)(),
            menu_repository=import_string(cafeteria_settings.MENU_REPOSITORY)(),
            notifier=import_string(cafeteria_settings.NOTIFICATION_BACKEND)(),
        )

    def seed_menu(self) -> list[MenuItem]:
        """Add the default menu. Items whose name is already on the menu are skipped."""
        existing = {item.name for item in self.menu.get_all_menu_items()}
        added = [
            self.menu.add_menu_item(name, description, Decimal(price), category)
            for name, description, price, category in DEFAULT_MENU
            if name not in existing
        ]
        logger.info("Seeded %s menu items", len(added))
        return added

    def place_order(self, student_id: str, lines, redeem_points: int = 0) -> Order:
        """
        Create, fill and confirm an order in one call.

        Args:
            student_id: Student ID placing the order
            lines: Iterable of (item_id, quantity)
            redeem_points: Loyalty points to redeem as a discount (0 for none)

        Returns:
            The confirmed order

        Raises:
            ValidationError: INVALID_ORDER_LINE or INVALID_QUANTITY for a
                malformed line, before any order is created.
            CafeteriaError: MENU_ITEM_NOT_FOUND for an unknown item, or any
                error from OrderService. The pending order is cancelled first.
        """
        lines = _parse_lines(lines)
        order = self.orders.create_order(student_id)
        try:
            for item_id, quantity in lines:
                menu_item = self.menu.get_menu_item(item_id)
                if menu_item is None:
                    raise CafeteriaError("MENU_ITEM_NOT_FOUND", item_id=item_id)
                self.orders.add_item_to_order(order.order_id, menu_item, quantity)

            if redeem_points > 0:
                self.orders.apply_loyalty_discount(order.order_id, redeem_points)
            return self.orders.confirm_order(order.order_id)
        except Exception:
            logger.warning("Placing order %s failed, cancelling it", order.order_id)
            self.orders.cancel_order(order.order_id)
            raise


def _parse_lines(lines) -> list[tuple[str, int]]:
    parsed = []
    for line in lines:
        try:
            item_id, quantity = line
        except (TypeError, ValueError):
            raise ValidationError("INVALID_ORDER_LINE", line=line) from None
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError("INVALID_QUANTITY", quantity=quantity)
        parsed.append((item_id, quantity))
    return parsed
