"""Menu item model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from cafeteria.exceptions import ValidationError
from cafeteria.money import format_money, to_decimal


class MenuCategory(models.TextChoices):
    MAIN_COURSE = "main_course", _("Main Course")
    SNACK = "snack", _("Snack")
    DRINK = "drink", _("Drink")
    DESSERT = "dessert", _("Dessert")
    BREAKFAST = "breakfast", _("Breakfast")


# Changing any of these refreshes updated_at
_TRACKED_FIELDS = {"name", "description", "price", "category", "available"}


@dataclass(eq=False)
class MenuItem:
    """
    Food or drink offered by the cafeteria.

    item_id is the identity: it cannot be reassigned once set, and equality
    and hashing use it alone. price is a Decimal that can never go negative
    (0.00 is allowed for reward items such as free water).
    """

    item_id: str
    name: str
    price: Decimal
    category: MenuCategory
    description: str = ""
    available: bool = True
    created_at: datetime = field(default_factory=timezone.now)
    updated_at: datetime = field(default_factory=timezone.now)

    def __setattr__(self, name, value):
        if name == "item_id":
            if "item_id" in self.__dict__:
                raise AttributeError("item_id is immutable")
            if not value or not str(value).strip():
                raise ValidationError("INVALID_MENU_ITEM", message="Item ID cannot be null or empty")
        elif name == "name":
            if not value or not str(value).strip():
                raise ValidationError("INVALID_MENU_ITEM", message="Item name cannot be null or empty")
        elif name == "price":
            value = to_decimal(value)
            if value < 0:
                raise ValidationError("INVALID_PRICE", price=value)
        elif name == "description":
            value = value or ""

        super().__setattr__(name, value)

        if name in _TRACKED_FIELDS and "updated_at" in self.__dict__:
            super().__setattr__("updated_at", timezone.now())

    def __eq__(self, other):
        if not isinstance(other, MenuItem):
            return NotImplemented
        return self.item_id == other.item_id

    def __hash__(self):
        return hash(self.item_id)

    def __str__(self):
        return f"{self.name} ({self.formatted_price})"

    @property
    def formatted_price(self) -> str:
        return format_money(self.price)

    def is_affordable_for(self, budget) -> bool:
        return to_decimal(budget) >= self.price
