"""Pytest fixtures for Cafeteria tests."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from django.contrib.auth.hashers import make_password

from cafeteria.adapters.memory import (
    InMemoryMenuRepository,
    InMemoryOrderRepository,
    InMemoryUserRepository,
)
from cafeteria.models import MenuCategory, MenuItem, Order, Staff, StaffRole, Student
from cafeteria.services.auth import AuthenticationService
from cafeteria.services.loyalty import LoyaltyService
from cafeteria.services.menu import MenuService
from cafeteria.services.notification import NotificationService
from cafeteria.services.order import OrderService


@pytest.fixture
def user_repository():
    return InMemoryUserRepository()


@pytest.fixture
def order_repository():
    return InMemoryOrderRepository()


@pytest.fixture
def menu_repository():
    return InMemoryMenuRepository()


@pytest.fixture
def notifier():
    """Notification backend double that records calls."""
    return MagicMock(spec=NotificationService)


@pytest.fixture
def loyalty_service(user_repository, notifier):
    return LoyaltyService(user_repository, notifier)


@pytest.fixture
def order_service(order_repository, loyalty_service, notifier):
    return OrderService(order_repository, loyalty_service, notifier)


@pytest.fixture
def menu_service(menu_repository):
    return MenuService(menu_repository)


@pytest.fixture
def auth_service(user_repository, notifier):
    return AuthenticationService(user_repository, notifier)


@pytest.fixture
def burger():
    """Classic burger, EGP 45.00."""
    return MenuItem(
        item_id="MAI_CLASS_000001",
        name="Classic Burger",
        description="Beef patty with lettuce and tomato",
        price=Decimal("45.00"),
        category=MenuCategory.MAIN_COURSE,
    )


@pytest.fixture
def fries():
    """French fries, EGP 25.00."""
    return MenuItem(
        item_id="SNA_FRENC_000002",
        name="French Fries",
        description="Golden crispy fries",
        price=Decimal("25.00"),
        category=MenuCategory.SNACK,
    )


@pytest.fixture
def water():
    """Bottled water, EGP 8.00."""
    return MenuItem(
        item_id="DRI_WATER_000003",
        name="Water",
        description="Pure bottled water",
        price=Decimal("8.00"),
        category=MenuCategory.DRINK,
    )


@pytest.fixture
def meal():
    """Combo meal priced at exactly EGP 100.00."""
    return MenuItem(
        item_id="MAI_COMBO_000004",
        name="Combo Meal",
        price=Decimal("100.00"),
        category=MenuCategory.MAIN_COURSE,
    )


@pytest.fixture
def menu(menu_repository, burger, fries, water, meal):
    """Menu repository holding the four menu item fixtures."""
    for item in (burger, fries, water, meal):
        menu_repository.save(item)
    return menu_repository


@pytest.fixture
def student(user_repository):
    """Registered student with an empty loyalty account."""
    return user_repository.save(
        Student(
            user_id="student1",
            name="John Smith",
            password=make_password("student123"),
            student_id="2023001",
        )
    )


@pytest.fixture
def rich_student(student):
    """The student fixture holding 150 points."""
    student.loyalty_account.add_points(150, "Welcome bonus")
    return student


@pytest.fixture
def cashier(user_repository):
    return user_repository.save(
        Staff(
            user_id="cashier1",
            name="Mike Wilson",
            password=make_password("cashier123"),
            employee_id="EMP003",
            role=StaffRole.CASHIER,
        )
    )


@pytest.fixture
def order(student):
    """Unsaved pending order for the student fixture."""
    return Order(student_id=student.student_id)
