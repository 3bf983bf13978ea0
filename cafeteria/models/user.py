"""
User models - Student and Staff as a tagged variant.

Student and Staff do not share a base class. Both carry a ``kind``
discriminant so code that handles users branches on ``user.kind`` and
covers every variant explicitly (see permissions_for).

    User = Student | Staff
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union

from django.contrib.auth.hashers import check_password
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from cafeteria.models.loyalty import LoyaltyAccount


class UserType(models.TextChoices):
    STUDENT = "student", _("Student")
    STAFF = "staff", _("Staff")


class StaffRole(models.TextChoices):
    ADMIN = "admin", _("Administrator - Full system access")
    CASHIER = "cashier", _("Cashier - Order processing")
    KITCHEN = "kitchen", _("Kitchen Staff - Order preparation")
    MANAGER = "manager", _("Manager - Reports and oversight")


class Permission(models.TextChoices):
    PLACE_ORDERS = "place_orders", _("Place orders")
    REDEEM_POINTS = "redeem_points", _("Redeem loyalty points")
    MANAGE_MENU = "manage_menu", _("Manage menu")
    PROCESS_ORDERS = "process_orders", _("Process orders")
    VIEW_REPORTS = "view_reports", _("View reports")


STUDENT_PERMISSIONS = frozenset({Permission.PLACE_ORDERS, Permission.REDEEM_POINTS})

ROLE_PERMISSIONS: dict[StaffRole, frozenset[Permission]] = {
    StaffRole.ADMIN: frozenset(
        {Permission.MANAGE_MENU, Permission.PROCESS_ORDERS, Permission.VIEW_REPORTS}
    ),
    StaffRole.CASHIER: frozenset({Permission.PROCESS_ORDERS}),
    StaffRole.KITCHEN: frozenset({Permission.PROCESS_ORDERS}),
    StaffRole.MANAGER: frozenset({Permission.MANAGE_MENU, Permission.VIEW_REPORTS}),
}


@dataclass(eq=False)
class Student:
    """Student customer. Owns exactly one loyalty account."""

    user_id: str
    name: str
    password: str  # Django password hash
    student_id: str
    loyalty_account: LoyaltyAccount = field(default_factory=LoyaltyAccount, repr=False)
    created_at: datetime = field(default_factory=timezone.now)
    kind: UserType = field(default=UserType.STUDENT, init=False)

    def __str__(self):
        return f"{self.name} ({self.student_id}): {self.loyalty_points}pts"

    def check_password(self, raw_password: str) -> bool:
        return check_password(raw_password, self.password)

    @property
    def loyalty_points(self) -> int:
        return self.loyalty_account.points

    def can_redeem_points(self, points: int) -> bool:
        return self.loyalty_account.can_redeem(points)


@dataclass(eq=False)
class Staff:
    """Cafeteria staff member. The role gates what they may do."""

    user_id: str
    name: str
    password: str  # Django password hash
    employee_id: str
    role: StaffRole
    created_at: datetime = field(default_factory=timezone.now)
    kind: UserType = field(default=UserType.STAFF, init=False)

    def __str__(self):
        return f"{self.name} ({self.employee_id}, {self.role.label})"

    def check_password(self, raw_password: str) -> bool:
        return check_password(raw_password, self.password)

    def has_permission(self, permission: Permission) -> bool:
        return permission in ROLE_PERMISSIONS[self.role]

    def can_manage_menu(self) -> bool:
        return self.has_permission(Permission.MANAGE_MENU)

    def can_process_orders(self) -> bool:
        return self.has_permission(Permission.PROCESS_ORDERS)

    def can_view_reports(self) -> bool:
        return self.has_permission(Permission.VIEW_REPORTS)


User = Union[Student, Staff]


def permissions_for(user: User) -> frozenset[Permission]:
    """Capabilities of any user variant."""
    if user.kind == UserType.STUDENT:
        return STUDENT_PERMISSIONS
    if user.kind == UserType.STAFF:
        return ROLE_PERMISSIONS[user.role]
    raise ValueError(f"Unknown user kind: {user.kind!r}")
