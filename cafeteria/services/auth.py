"""Authentication service - registration, login and password changes."""

import logging
import re
import uuid

from django.contrib.auth.hashers import make_password

from cafeteria import signals
from cafeteria.exceptions import CafeteriaError, ValidationError
from cafeteria.models import Staff, StaffRole, Student, User

logger = logging.getLogger(__name__)


USER_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,20}$")
STUDENT_ID_PATTERN = re.compile(r"^[0-9]{6,10}$")
EMPLOYEE_ID_PATTERN = re.compile(r"^EMP[0-9]{3,6}$")
NAME_PATTERN = re.compile(r"^[a-zA-Z\s]{2,50}$")
MIN_PASSWORD_LENGTH = 6


class AuthenticationService:
    """
    Service for user accounts.

    Passwords are stored as Django password hashes; raw passwords never
    leave this service.
    """

    def __init__(self, user_repository, notifier):
        self.user_repository = user_repository
        self.notifier = notifier

    def register_student(self, user_id: str, name: str, password: str, student_id: str) -> Student:
        """
        Register a student with an empty loyalty account.

        Args:
            user_id: Login name (3-20 letters, digits or underscores)
            name: Full name (2-50 letters and spaces)
            password: Raw password (at least 6 chars)
            student_id: University student number (6-10 digits)

        Returns:
            Saved Student

        Raises:
            ValidationError: If a field is invalid
            CafeteriaError: DUPLICATE_USER_ID or DUPLICATE_STUDENT_ID
        """
        self._validate_common(user_id, name, password)
        if student_id is None or not STUDENT_ID_PATTERN.fullmatch(student_id.strip()):
            raise ValidationError("INVALID_STUDENT", message="Invalid student ID. Must be 6-10 digits")

        user_id, student_id = user_id.strip(), student_id.strip()
        if not self.is_user_id_available(user_id):
            raise CafeteriaError("DUPLICATE_USER_ID", user_id=user_id)
        if not self.is_student_id_available(student_id):
            raise CafeteriaError("DUPLICATE_STUDENT_ID", student_id=student_id)

        student = Student(
            user_id=user_id,
            name=name.strip(),
            password=make_password(password),
            student_id=student_id,
        )
        self.user_repository.save(student)
        logger.info("Registered student %s (%s)", student.user_id, student.student_id)

        self.notifier.notify_student_welcome(student)
        signals.student_registered.send(sender=Student, student=student)
        return student

    def register_staff(
        self,
        user_id: str,
        name: str,
        password: str,
        employee_id: str,
        role: StaffRole,
    ) -> Staff:
        """
        Register a staff member.

        Raises:
            ValidationError: If a field is invalid (employee_id must look like EMP123)
            CafeteriaError: DUPLICATE_USER_ID or DUPLICATE_EMPLOYEE_ID
        """
        self._validate_common(user_id, name, password)
        if employee_id is None or not EMPLOYEE_ID_PATTERN.fullmatch(employee_id.strip()):
            raise ValidationError(
                "INVALID_EMPLOYEE",
                message="Invalid employee ID. Must follow format EMP### (3-6 digits)",
            )
        if role is None:
            raise ValidationError("INVALID_EMPLOYEE", message="Staff role cannot be null")

        user_id, employee_id = user_id.strip(), employee_id.strip()
        if not self.is_user_id_available(user_id):
            raise CafeteriaError("DUPLICATE_USER_ID", user_id=user_id)
        if not self.is_employee_id_available(employee_id):
            raise CafeteriaError("DUPLICATE_EMPLOYEE_ID", employee_id=employee_id)

        staff = Staff(
            user_id=user_id,
            name=name.strip(),
            password=make_password(password),
            employee_id=employee_id,
            role=StaffRole(role),
        )
        self.user_repository.save(staff)
        logger.info("Registered staff %s (%s, %s)", staff.user_id, staff.employee_id, staff.role)
        return staff

    def login(self, user_id: str, password: str) -> User | None:
        """
        Authenticate by user ID, or by student ID for students.

        Returns:
            The user, or None if the credentials do not match
        """
        if user_id is None or password is None:
            return None
        user_id = user_id.strip()

        user = self.user_repository.find_by_id(user_id)
        if user is not None and user.check_password(password):
            return user

        student = self.user_repository.find_student_by_student_id(user_id)
        if student is not None and student.check_password(password):
            return student

        logger.warning("Failed login for %s", user_id)
        return None

    def validate_credentials(self, user_id: str, password: str) -> bool:
        return self.login(user_id, password) is not None

    def is_user_id_available(self, user_id: str) -> bool:
        if not user_id or not user_id.strip():
            return False
        return not self.user_repository.exists_by_id(user_id.strip())

    def is_student_id_available(self, student_id: str) -> bool:
        if not student_id or not student_id.strip():
            return False
        return not self.user_repository.exists_by_student_id(student_id.strip())

    def is_employee_id_available(self, employee_id: str) -> bool:
        if not employee_id or not employee_id.strip():
            return False
        return not self.user_repository.exists_by_employee_id(employee_id.strip())

    def find_user(self, user_id: str) -> User | None:
        if user_id is None:
            return None
        return self.user_repository.find_by_id(user_id.strip())

    def find_student(self, student_id: str) -> Student | None:
        if student_id is None:
            return None
        return self.user_repository.find_student_by_student_id(student_id.strip())

    def update_password(self, user_id: str, old_password: str, new_password: str) -> bool:
        """
        Change a password after checking the old one.

        Returns:
            False if the user is unknown or old_password does not match

        Raises:
            ValidationError: If new_password is too short
        """
        if user_id is None or old_password is None or new_password is None:
            return False

        user = self.find_user(user_id)
        if user is None or not user.check_password(old_password):
            return False
        if not self._is_valid_password(new_password):
            raise ValidationError("INVALID_PASSWORD", message="New password does not meet requirements")

        user.password = make_password(new_password)
        self.user_repository.update(user)
        logger.info("Password updated for %s", user.user_id)
        return True

    def generate_suggested_user_id(self, name: str) -> str:
        """First available login derived from name ("John Smith" -> "johnsmith", "johnsmith1", ...)."""
        if not name or not name.strip():
            return ""

        base_id = re.sub(r"[^a-z0-9]", "", name.strip().lower())[:10]
        if len(base_id) < 3:
            base_id = (base_id + "user")[:10]
        if self.is_user_id_available(base_id):
            return base_id

        for i in range(1, 1000):
            suggested = f"{base_id}{i}"
            if self.is_user_id_available(suggested):
                return suggested
        return f"{base_id}_{uuid.uuid4().hex[:4]}"

    def get_student_count(self) -> int:
        return len(self.user_repository.find_all_students())

    def get_staff_count(self) -> int:
        return len(self.user_repository.find_all_staff())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _validate_common(self, user_id: str, name: str, password: str) -> None:
        if user_id is None or not USER_ID_PATTERN.fullmatch(user_id.strip()):
            raise ValidationError(
                "INVALID_USER",
                message="Invalid user ID. Must be 3-20 characters (letters, numbers, underscore only)",
            )
        if name is None or not NAME_PATTERN.fullmatch(name.strip()):
            raise ValidationError(
                "INVALID_USER",
                message="Invalid name. Must be 2-50 characters (letters and spaces only)",
            )
        if not self._is_valid_password(password):
            raise ValidationError(
                "INVALID_PASSWORD",
                message=f"Invalid password. Must be at least {MIN_PASSWORD_LENGTH} characters",
            )

    def _is_valid_password(self, password: str) -> bool:
        return password is not None and len(password) >= MIN_PASSWORD_LENGTH
