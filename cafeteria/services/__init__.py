"""Cafeteria services.

CORE:
- cafeteria.services.loyalty: LoyaltyService
- cafeteria.services.order: OrderService

Supporting:
- cafeteria.services.menu: MenuService
- cafeteria.services.auth: AuthenticationService
- cafeteria.services.notification: NotificationService (default notification backend)
"""

from cafeteria.services.auth import AuthenticationService
from cafeteria.services.loyalty import LoyaltyService, RedemptionOption
from cafeteria.services.menu import MenuService
from cafeteria.services.notification import Notification, NotificationService, NotificationType
from cafeteria.services.order import OrderService

__all__ = [
    "AuthenticationService",
    "LoyaltyService",
    "RedemptionOption",
    "MenuService",
    "Notification",
    "NotificationService",
    "NotificationType",
    "OrderService",
]
