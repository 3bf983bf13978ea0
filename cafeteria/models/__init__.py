"""Cafeteria domain models.

Plain dataclasses kept in memory; storage goes through the repository
protocols in cafeteria.protocols.
"""

from cafeteria.models.menu_item import MenuItem, MenuCategory
from cafeteria.models.loyalty import LoyaltyAccount, LoyaltyTransaction, TransactionType
from cafeteria.models.order import (
    ALLOWED_TRANSITIONS,
    Order,
    OrderItem,
    OrderStatus,
    can_transition,
)
from cafeteria.models.user import (
    Permission,
    Staff,
    StaffRole,
    Student,
    User,
    UserType,
    permissions_for,
)

__all__ = [
    # Menu
    "MenuItem",
    "MenuCategory",
    # Loyalty ledger
    "LoyaltyAccount",
    "LoyaltyTransaction",
    "TransactionType",
    # Orders
    "Order",
    "OrderItem",
    "OrderStatus",
    "ALLOWED_TRANSITIONS",
    "can_transition",
    # Users (tagged variant)
    "User",
    "UserType",
    "Student",
    "Staff",
    "StaffRole",
    "Permission",
    "permissions_for",
]
