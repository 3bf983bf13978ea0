"""Menu service - catalogue maintenance and browsing."""

import logging
import re
import uuid
from decimal import Decimal

from cafeteria.exceptions import CafeteriaError, ValidationError
from cafeteria.models import MenuCategory, MenuItem
from cafeteria.money import to_decimal

logger = logging.getLogger(__name__)


MIN_PRICE = Decimal("0.01")
MAX_PRICE = Decimal("1000.00")
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500


class MenuService:
    """Service for menu operations."""

    def __init__(self, menu_repository):
        self.menu_repository = menu_repository

    def add_menu_item(
        self,
        name: str,
        description: str,
        price,
        category: MenuCategory,
    ) -> MenuItem:
        """
        Add a new item to the menu.

        Args:
            name: Display name (1..100 chars)
            description: Optional description (up to 500 chars)
            price: Price between 0.01 and 1000.00
            category: MenuCategory

        Returns:
            Saved MenuItem with a generated item_id

        Raises:
            ValidationError: If any field is invalid
        """
        self._validate_name(name)
        self._validate_description(description)
        price = self._validate_price(price)
        if category is None:
            raise ValidationError("INVALID_MENU_ITEM", message="Category cannot be null")
        category = MenuCategory(category)

        menu_item = MenuItem(
            item_id=self._generate_item_id(name, category),
            name=name.strip(),
            description=(description or "").strip(),
            price=price,
            category=category,
        )
        self.menu_repository.save(menu_item)
        logger.info("Added menu item %s (%s)", menu_item.item_id, menu_item.name)
        return menu_item

    def update_menu_item(
        self,
        item_id: str,
        name: str | None = None,
        description: str | None = None,
        price=None,
        category: MenuCategory | None = None,
    ) -> MenuItem:
        """
        Update the given fields of an item. None leaves a field unchanged.

        Raises:
            CafeteriaError: MENU_ITEM_NOT_FOUND
            ValidationError: If a new value is invalid
        """
        menu_item = self.get_menu_item(item_id)
        if menu_item is None:
            raise CafeteriaError("MENU_ITEM_NOT_FOUND", item_id=item_id)

        if name is not None:
            self._validate_name(name)
        if description is not None:
            self._validate_description(description)
        if price is not None:
            price = self._validate_price(price)

        if name is not None:
            menu_item.name = name.strip()
        if description is not None:
            menu_item.description = description.strip()
        if price is not None:
            menu_item.price = price
        if category is not None:
            menu_item.category = MenuCategory(category)

        return self.menu_repository.update(menu_item)

    def remove_menu_item(self, item_id: str) -> bool:
        if not item_id or not item_id.strip():
            return False
        removed = self.menu_repository.delete_by_id(item_id.strip())
        if removed:
            logger.info("Removed menu item %s", item_id)
        return removed

    def set_item_availability(self, item_id: str, available: bool) -> bool:
        """Returns False if the item does not exist."""
        menu_item = self.get_menu_item(item_id)
        if menu_item is None:
            return False

        menu_item.available = available
        self.menu_repository.update(menu_item)
        return True

    def get_menu_item(self, item_id: str) -> MenuItem | None:
        if item_id is None:
            return None
        return self.menu_repository.find_by_id(item_id.strip())

    def get_all_menu_items(self) -> list[MenuItem]:
        return self.menu_repository.find_all()

    def get_available_menu_items(self) -> list[MenuItem]:
        return self.menu_repository.find_all_available()

    def get_menu_items_by_category(self, category: MenuCategory | None, available_only: bool = True) -> list[MenuItem]:
        """Items of a category. No category means the whole menu."""
        if category is None:
            return self.get_available_menu_items() if available_only else self.get_all_menu_items()
        return self.menu_repository.find_by_category(category, available_only=available_only)

    def search_menu_items(self, search_term: str | None, available_only: bool = True) -> list[MenuItem]:
        """Case-insensitive search over name and description. A blank term lists the menu."""
        if not search_term or not search_term.strip():
            return self.get_available_menu_items() if available_only else self.get_all_menu_items()

        results = self.menu_repository.find_by_name_containing(search_term.strip())
        if available_only:
            results = [item for item in results if item.available]
        return results

    def get_affordable_menu_items(self, budget, available_only: bool = True) -> list[MenuItem]:
        """Items priced at or under budget. Empty for a missing or non-positive budget."""
        if budget is None:
            return []
        budget = to_decimal(budget)
        if budget <= 0:
            return []

        items = self.get_available_menu_items() if available_only else self.get_all_menu_items()
        return [item for item in items if item.is_affordable_for(budget)]

    def get_budget_friendly_items(self, max_price) -> list[MenuItem]:
        """Available items priced at or under max_price, cheapest first."""
        max_price = to_decimal(max_price)
        items = [item for item in self.get_available_menu_items() if item.price <= max_price]
        return sorted(items, key=lambda item: item.price)

    def get_featured_items(self) -> list[MenuItem]:
        """The most expensive available item of each category."""
        featured: dict[MenuCategory, MenuItem] = {}
        for item in self.get_available_menu_items():
            current = featured.get(item.category)
            if current is None or item.price > current.price:
                featured[item.category] = item
        return list(featured.values())

    def get_menu_statistics(self) -> dict[MenuCategory, int]:
        """Item count per category."""
        return self.menu_repository.count_by_category()

    def validate_menu_item_data(self, name: str, price) -> bool:
        try:
            self._validate_name(name)
            self._validate_price(price)
        except ValidationError:
            return False
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _validate_name(self, name: str) -> None:
        if not name or not name.strip():
            raise ValidationError("INVALID_MENU_ITEM", message="Item name cannot be null or empty")
        if len(name.strip()) > MAX_NAME_LENGTH:
            raise ValidationError(
                "INVALID_MENU_ITEM",
                message=f"Item name cannot exceed {MAX_NAME_LENGTH} characters",
            )

    def _validate_description(self, description: str | None) -> None:
        if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                "INVALID_MENU_ITEM",
                message=f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters",
            )

    def _validate_price(self, price) -> Decimal:
        if price is None:
            raise ValidationError("INVALID_PRICE", message="Price cannot be null")
        price = to_decimal(price)
        if price < MIN_PRICE:
            raise ValidationError("INVALID_PRICE", message=f"Price must be at least {MIN_PRICE}")
        if price > MAX_PRICE:
            raise ValidationError("INVALID_PRICE", message=f"Price cannot exceed {MAX_PRICE}")
        return price

    def _generate_item_id(self, name: str, category: MenuCategory) -> str:
        """<CAT3>_<NAME5>_<HEX6>, e.g. MAI_CLASS_1A2B3C."""
        clean_name = re.sub(r"[^a-zA-Z0-9]", "", name).upper()[:5] or "ITEM"
        base_id = f"{category.name[:3]}_{clean_name}_{uuid.uuid4().hex[:6].upper()}"

        item_id = base_id
        counter = 1
        while self.menu_repository.exists_by_id(item_id):
            item_id = f"{base_id}_{counter}"
            counter += 1
        return item_id
