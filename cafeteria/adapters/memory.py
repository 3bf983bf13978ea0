"""
In-memory repositories.

Each repository keeps a primary map (identity -> entity) plus secondary
indexes (key -> identity or set of identities). Every save/update/delete
rewrites the primary entry and its index entries under one RLock, so the
indexes never point at a missing or stale entity.

Entities are stored by reference: callers mutate the object and then call
update() so the indexes follow the new state.
"""

import threading
from collections import defaultdict
from datetime import date, datetime

from django.utils import timezone

from cafeteria.exceptions import CafeteriaError, ValidationError
from cafeteria.models import (
    MenuCategory,
    MenuItem,
    Order,
    OrderStatus,
    Staff,
    Student,
    User,
    UserType,
)


def _local_date(value: datetime) -> date:
    if timezone.is_aware(value):
        return timezone.localtime(value).date()
    return value.date()


class InMemoryUserRepository:
    """Users by user_id, with student_id and employee_id indexes."""

    def __init__(self):
        self._lock = threading.RLock()
        self._users: dict[str, User] = {}
        self._student_index: dict[str, str] = {}  # student_id -> user_id
        self._employee_index: dict[str, str] = {}  # employee_id -> user_id
        self._indexed_key: dict[str, tuple[UserType, str]] = {}  # user_id -> (kind, key it is indexed under)

    def save(self, user: User) -> User:
        if user is None:
            raise ValidationError("INVALID_USER", message="User cannot be null")

        with self._lock:
            self._check_secondary_key(user)
            self._unindex(user.user_id)
            self._users[user.user_id] = user
            if user.kind == UserType.STUDENT:
                self._student_index[user.student_id] = user.user_id
                self._indexed_key[user.user_id] = (UserType.STUDENT, user.student_id)
            elif user.kind == UserType.STAFF:
                self._employee_index[user.employee_id] = user.user_id
                self._indexed_key[user.user_id] = (UserType.STAFF, user.employee_id)
        return user

    def find_by_id(self, user_id: str) -> User | None:
        if user_id is None:
            return None
        with self._lock:
            return self._users.get(user_id)

    def find_student_by_student_id(self, student_id: str) -> Student | None:
        if student_id is None:
            return None
        with self._lock:
            user_id = self._student_index.get(student_id)
            return self._users.get(user_id) if user_id else None

    def find_staff_by_employee_id(self, employee_id: str) -> Staff | None:
        if employee_id is None:
            return None
        with self._lock:
            user_id = self._employee_index.get(employee_id)
            return self._users.get(user_id) if user_id else None

    def exists_by_id(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._users

    def exists_by_student_id(self, student_id: str) -> bool:
        with self._lock:
            return student_id in self._student_index

    def exists_by_employee_id(self, employee_id: str) -> bool:
        with self._lock:
            return employee_id in self._employee_index

    def find_all_students(self) -> list[Student]:
        with self._lock:
            return [u for u in self._users.values() if u.kind == UserType.STUDENT]

    def find_all_staff(self) -> list[Staff]:
        with self._lock:
            return [u for u in self._users.values() if u.kind == UserType.STAFF]

    def update(self, user: User) -> User:
        if user is None:
            raise ValidationError("INVALID_USER", message="User cannot be null")
        with self._lock:
            if user.user_id not in self._users:
                raise CafeteriaError("USER_NOT_FOUND", user_id=user.user_id)
            return self.save(user)

    def delete_by_id(self, user_id: str) -> bool:
        with self._lock:
            if user_id not in self._users:
                return False
            self._unindex(user_id)
            del self._users[user_id]
            return True

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def clear(self) -> None:
        with self._lock:
            self._users.clear()
            self._student_index.clear()
            self._employee_index.clear()
            self._indexed_key.clear()

    def _check_secondary_key(self, user: User) -> None:
        if user.kind == UserType.STUDENT:
            owner = self._student_index.get(user.student_id)
            if owner is not None and owner != user.user_id:
                raise CafeteriaError("DUPLICATE_STUDENT_ID", student_id=user.student_id)
        elif user.kind == UserType.STAFF:
            owner = self._employee_index.get(user.employee_id)
            if owner is not None and owner != user.user_id:
                raise CafeteriaError("DUPLICATE_EMPLOYEE_ID", employee_id=user.employee_id)

    def _unindex(self, user_id: str) -> None:
        indexed = self._indexed_key.pop(user_id, None)
        if indexed is None:
            return
        kind, key = indexed
        if kind == UserType.STUDENT:
            self._student_index.pop(key, None)
        else:
            self._employee_index.pop(key, None)


class InMemoryOrderRepository:
    """Orders by order_id, with a student_id -> order ids index."""

    def __init__(self):
        self._lock = threading.RLock()
        self._orders: dict[str, Order] = {}
        self._student_index: defaultdict[str, set[str]] = defaultdict(set)
        self._indexed_student: dict[str, str] = {}  # order_id -> student_id it is indexed under

    def save(self, order: Order) -> Order:
        if order is None:
            raise ValidationError("INVALID_ORDER", message="Order cannot be null")

        with self._lock:
            self._unindex(order.order_id)
            self._orders[order.order_id] = order
            self._student_index[order.student_id].add(order.order_id)
            self._indexed_student[order.order_id] = order.student_id
        return order

    def find_by_id(self, order_id: str) -> Order | None:
        if order_id is None:
            return None
        with self._lock:
            return self._orders.get(order_id)

    def find_by_student_id(self, student_id: str) -> list[Order]:
        with self._lock:
            orders = [self._orders[oid] for oid in self._student_index.get(student_id, ())]
        return sorted(orders, key=lambda o: o.order_time, reverse=True)

    def find_recent_by_student_id(self, student_id: str, limit: int) -> list[Order]:
        if limit <= 0:
            return []
        return self.find_by_student_id(student_id)[:limit]

    def find_by_status(self, status: OrderStatus) -> list[Order]:
        return self._select(lambda o: o.status == status)

    def find_by_date(self, day: date) -> list[Order]:
        return self._select(lambda o: _local_date(o.order_time) == day)

    def find_by_date_range(self, start: date, end: date) -> list[Order]:
        return self._select(lambda o: start <= _local_date(o.order_time) <= end)

    def find_containing_item(self, item_id: str) -> list[Order]:
        return self._select(lambda o: o.get_item(item_id) is not None)

    def find_all(self) -> list[Order]:
        with self._lock:
            orders = list(self._orders.values())
        return sorted(orders, key=lambda o: o.order_time, reverse=True)

    def update(self, order: Order) -> Order:
        if order is None:
            raise ValidationError("INVALID_ORDER", message="Order cannot be null")
        with self._lock:
            if order.order_id not in self._orders:
                raise CafeteriaError("ORDER_NOT_FOUND", order_id=order.order_id)
            return self.save(order)

    def delete_by_id(self, order_id: str) -> bool:
        with self._lock:
            if order_id not in self._orders:
                return False
            self._unindex(order_id)
            del self._orders[order_id]
            return True

    def exists_by_id(self, order_id: str) -> bool:
        with self._lock:
            return order_id in self._orders

    def count_by_status(self) -> dict[OrderStatus, int]:
        counts = {status: 0 for status in OrderStatus}
        with self._lock:
            for order in self._orders.values():
                counts[order.status] += 1
        return counts

    def count(self) -> int:
        with self._lock:
            return len(self._orders)

    def clear(self) -> None:
        with self._lock:
            self._orders.clear()
            self._student_index.clear()
            self._indexed_student.clear()

    def _select(self, predicate) -> list[Order]:
        """Matching orders, oldest first."""
        with self._lock:
            orders = [o for o in self._orders.values() if predicate(o)]
        return sorted(orders, key=lambda o: o.order_time)

    def _unindex(self, order_id: str) -> None:
        student_id = self._indexed_student.pop(order_id, None)
        if student_id is None:
            return
        ids = self._student_index.get(student_id)
        if ids is not None:
            ids.discard(order_id)
            if not ids:
                del self._student_index[student_id]


class InMemoryMenuRepository:
    """Menu items by item_id, with a category -> item ids index."""

    def __init__(self):
        self._lock = threading.RLock()
        self._items: dict[str, MenuItem] = {}
        self._category_index: defaultdict[MenuCategory, set[str]] = defaultdict(set)
        self._indexed_category: dict[str, MenuCategory] = {}

    def save(self, menu_item: MenuItem) -> MenuItem:
        if menu_item is None:
            raise ValidationError("INVALID_MENU_ITEM")

        with self._lock:
            self._unindex(menu_item.item_id)
            self._items[menu_item.item_id] = menu_item
            self._category_index[menu_item.category].add(menu_item.item_id)
            self._indexed_category[menu_item.item_id] = menu_item.category
        return menu_item

    def find_by_id(self, item_id: str) -> MenuItem | None:
        if item_id is None:
            return None
        with self._lock:
            return self._items.get(item_id)

    def find_all(self) -> list[MenuItem]:
        with self._lock:
            items = list(self._items.values())
        return sorted(items, key=lambda i: (i.category, i.name))

    def find_all_available(self) -> list[MenuItem]:
        return [item for item in self.find_all() if item.available]

    def find_by_category(self, category: MenuCategory, available_only: bool = False) -> list[MenuItem]:
        with self._lock:
            items = [self._items[iid] for iid in self._category_index.get(category, ())]
        items = [item for item in items if item.category == category]
        if available_only:
            items = [item for item in items if item.available]
        return sorted(items, key=lambda i: i.name)

    def find_by_name_containing(self, text: str) -> list[MenuItem]:
        needle = (text or "").strip().lower()
        if not needle:
            return []
        return [
            item
            for item in self.find_all()
            if needle in item.name.lower() or needle in item.description.lower()
        ]

    def find_by_price_range(self, min_price, max_price, available_only: bool = False) -> list[MenuItem]:
        items = self.find_all_available() if available_only else self.find_all()
        return sorted(
            (item for item in items if min_price <= item.price <= max_price),
            key=lambda i: i.price,
        )

    def exists_by_id(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._items

    def update(self, menu_item: MenuItem) -> MenuItem:
        if menu_item is None:
            raise ValidationError("INVALID_MENU_ITEM")
        with self._lock:
            if menu_item.item_id not in self._items:
                raise CafeteriaError("MENU_ITEM_NOT_FOUND", item_id=menu_item.item_id)
            return self.save(menu_item)

    def delete_by_id(self, item_id: str) -> bool:
        with self._lock:
            if item_id not in self._items:
                return False
            self._unindex(item_id)
            del self._items[item_id]
            return True

    def count_by_category(self) -> dict[MenuCategory, int]:
        with self._lock:
            return {
                category: len(self._category_index.get(category, ()))
                for category in MenuCategory
            }

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._category_index.clear()
            self._indexed_category.clear()

    def _unindex(self, item_id: str) -> None:
        category = self._indexed_category.pop(item_id, None)
        if category is None:
            return
        ids = self._category_index.get(category)
        if ids is not None:
            ids.discard(item_id)
            if not ids:
                del self._category_index[category]
