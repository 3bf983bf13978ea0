"""Storage protocols.

Lookups return None (or an empty list) when nothing matches and never raise
for absence. update() raises CafeteriaError (USER_NOT_FOUND,
ORDER_NOT_FOUND, MENU_ITEM_NOT_FOUND) when the identity was never saved.

Configuration in settings.py:
    CAFETERIA = {
        "USER_REPOSITORY": "cafeteria.adapters.memory.InMemoryUserRepository",
        "ORDER_REPOSITORY": "cafeteria.adapters.memory.InMemoryOrderRepository",
        "MENU_REPOSITORY": "cafeteria.adapters.memory.InMemoryMenuRepository",
    }
"""

from datetime import date
from typing import Protocol, runtime_checkable

from cafeteria.models import MenuCategory, MenuItem, Order, OrderStatus, Staff, Student, User


@runtime_checkable
class UserRepository(Protocol):
    """Users keyed by user_id, with student_id / employee_id secondary keys."""

    def save(self, user: User) -> User:
        """Insert or replace a user."""
        ...

    def find_by_id(self, user_id: str) -> User | None:
        ...

    def find_student_by_student_id(self, student_id: str) -> Student | None:
        ...

    def find_staff_by_employee_id(self, employee_id: str) -> Staff | None:
        ...

    def exists_by_id(self, user_id: str) -> bool:
        ...

    def exists_by_student_id(self, student_id: str) -> bool:
        ...

    def exists_by_employee_id(self, employee_id: str) -> bool:
        ...

    def find_all_students(self) -> list[Student]:
        ...

    def find_all_staff(self) -> list[Staff]:
        ...

    def update(self, user: User) -> User:
        """Replace a registered user. Raises CafeteriaError(USER_NOT_FOUND)."""
        ...

    def delete_by_id(self, user_id: str) -> bool:
        ...


@runtime_checkable
class OrderRepository(Protocol):
    """Orders keyed by order_id, indexed by student."""

    def save(self, order: Order) -> Order:
        ...

    def find_by_id(self, order_id: str) -> Order | None:
        ...

    def find_by_student_id(self, student_id: str) -> list[Order]:
        """Orders of a student, most recent first."""
        ...

    def find_recent_by_student_id(self, student_id: str, limit: int) -> list[Order]:
        ...

    def find_by_status(self, status: OrderStatus) -> list[Order]:
        """Orders in a status, oldest first (processing order)."""
        ...

    def find_by_date(self, day: date) -> list[Order]:
        ...

    def find_by_date_range(self, start: date, end: date) -> list[Order]:
        """Orders placed between start and end, both inclusive."""
        ...

    def find_all(self) -> list[Order]:
        ...

    def update(self, order: Order) -> Order:
        """Replace a registered order. Raises CafeteriaError(ORDER_NOT_FOUND)."""
        ...

    def delete_by_id(self, order_id: str) -> bool:
        ...

    def exists_by_id(self, order_id: str) -> bool:
        ...

    def count_by_status(self) -> dict[OrderStatus, int]:
        """Order count for every status (0 included)."""
        ...


@runtime_checkable
class MenuRepository(Protocol):
    """Menu items keyed by item_id, indexed by category."""

    def save(self, menu_item: MenuItem) -> MenuItem:
        ...

    def find_by_id(self, item_id: str) -> MenuItem | None:
        ...

    def find_all(self) -> list[MenuItem]:
        ...

    def find_all_available(self) -> list[MenuItem]:
        ...

    def find_by_category(self, category: MenuCategory, available_only: bool = False) -> list[MenuItem]:
        ...

    def find_by_name_containing(self, text: str) -> list[MenuItem]:
        """Case-insensitive name or description search."""
        ...

    def exists_by_id(self, item_id: str) -> bool:
        ...

    def update(self, menu_item: MenuItem) -> MenuItem:
        """Replace a registered item. Raises CafeteriaError(MENU_ITEM_NOT_FOUND)."""
        ...

    def delete_by_id(self, item_id: str) -> bool:
        ...

    def count_by_category(self) -> dict[MenuCategory, int]:
        """Item count for every category (0 included)."""
        ...
