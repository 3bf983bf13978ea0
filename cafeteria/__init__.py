"""
Django Cafeteria - University cafeteria orders and loyalty points.

Usage:
    from cafeteria import CafeteriaSystem

    system = CafeteriaSystem.from_settings()
    system.seed_menu()
    student = system.auth.register_student("student1", "John Smith", "secret1", "2023001")
    order = system.place_order("2023001", [("MAI_CLASS_1A2B3C", 2)])

    system.loyalty.get_points_balance("2023001")
    system.loyalty.get_available_redemptions(150)
"""


def __getattr__(name):
    if name == "CafeteriaSystem":
        from cafeteria.system import CafeteriaSystem

        return CafeteriaSystem
    if name == "LoyaltyService":
        from cafeteria.services.loyalty import LoyaltyService

        return LoyaltyService
    if name == "OrderService":
        from cafeteria.services.order import OrderService

        return OrderService
    if name == "CafeteriaError":
        from cafeteria.exceptions import CafeteriaError

        return CafeteriaError
    if name == "ValidationError":
        from cafeteria.exceptions import ValidationError

        return ValidationError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "CafeteriaSystem",
    "LoyaltyService",
    "OrderService",
    "CafeteriaError",
    "ValidationError",
]
__version__ = "0.1.0"
