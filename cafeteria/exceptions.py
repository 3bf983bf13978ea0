"""Cafeteria exceptions."""


class CafeteriaError(Exception):
    """
    Structured exception for cafeteria operations.

    Carries a machine-readable ``code``, a human message and the context
    values passed as keyword arguments.

    Usage:
        try:
            order_service.confirm_order("ORD-1A2B3C4D")
        except CafeteriaError as e:
            if e.code == "ORDER_NOT_FOUND":
                handle_not_found()
    """

    _default_messages = {
        "USER_NOT_FOUND": "User not found",
        "ORDER_NOT_FOUND": "Order not found",
        "MENU_ITEM_NOT_FOUND": "Menu item not found",
        "DUPLICATE_USER_ID": "User ID already exists",
        "DUPLICATE_STUDENT_ID": "Student ID already exists",
        "DUPLICATE_EMPLOYEE_ID": "Employee ID already exists",
        "INVALID_QUANTITY": "Quantity must be positive",
        "INVALID_PRICE": "Price cannot be negative",
        "INVALID_AMOUNT": "Amount must be a number",
        "INVALID_MENU_ITEM": "Menu item cannot be null",
        "INVALID_ORDER_LINE": "Order lines must be (item_id, quantity) pairs",
        "MENU_ITEM_UNAVAILABLE": "Menu item is not available",
        "ORDER_NOT_MODIFIABLE": "Order can only be modified when in PENDING status",
        "ORDER_EMPTY": "Order has no items",
        "ORDER_TOO_LARGE": "Order exceeds the maximum number of items",
        "INVALID_STATUS_TRANSITION": "Invalid order status transition",
        "LOYALTY_INVALID_POINTS": "Points must be positive",
        "LOYALTY_INSUFFICIENT_POINTS": "Insufficient points for redemption",
        "LOYALTY_ALREADY_REDEEMED": "Loyalty points already redeemed on this order",
        "LOYALTY_UNKNOWN_TIER": "No redemption tier for the given points",
        "LOYALTY_RESTORE_ONLY": "Historical redemptions can only be added while restoring",
    }

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __repr__(self):
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "data": self.data}


class ValidationError(CafeteriaError, ValueError):
    """
    Invalid or missing argument.

    Raised synchronously and left for the caller to handle: null items,
    non-positive quantities, negative prices, non-positive points and
    redemptions that exceed the available balance.
    """
