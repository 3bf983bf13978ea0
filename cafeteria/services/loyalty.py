"""Loyalty service - earning, redemption and reward tiers."""

import logging
from dataclasses import dataclass
from decimal import Decimal

from cafeteria import signals
from cafeteria.conf import cafeteria_settings
from cafeteria.exceptions import CafeteriaError, ValidationError
from cafeteria.models import LoyaltyTransaction, Student, TransactionType, UserType
from cafeteria.money import (
    ZERO,
    discount_for_points,
    format_money,
    points_for_amount,
    points_for_discount,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedemptionOption:
    """A reward a student can buy with points."""

    points_required: int
    discount_amount: Decimal
    description: str
    free_item: str = ""

    @property
    def is_free_item(self) -> bool:
        return bool(self.free_item)


# Reward tiers (points cost, discount, free item name)
_REDEMPTION_TIERS = [
    (50, Decimal("10.00"), ""),
    (100, ZERO, "Water"),
    (200, Decimal("40.00"), ""),
    (500, Decimal("100.00"), ""),
]


def _tier_option(points: int, discount: Decimal, free_item: str) -> RedemptionOption:
    if free_item:
        description = f"{points} points = Free {free_item}"
    else:
        description = f"{points} points = {format_money(discount)} discount"
    return RedemptionOption(points, discount, description, free_item)


class LoyaltyService:
    """
    Service for loyalty program operations.

    Students are looked up by student_id through the user repository; every
    balance change is written back with user_repository.update() and
    reported to the notification backend.
    """

    def __init__(self, user_repository, notifier):
        self.user_repository = user_repository
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Earning
    # ------------------------------------------------------------------

    def calculate_points_earned(self, order_amount) -> int:
        """1 point per POINTS_EARN_UNIT spent, rounded down. 0 for None or <= 0."""
        return points_for_amount(order_amount)

    def award_points(self, student_id: str, points: int, description: str) -> bool:
        """
        Credit points to a student's account.

        Args:
            student_id: Student ID (not user ID)
            points: Points to award
            description: Ledger description

        Returns:
            True if credited, False if points <= 0 or the student is unknown
        """
        if student_id is None or points <= 0:
            return False

        student = self._get_student(student_id)
        if student is None:
            logger.warning("Cannot award %s points: unknown student %s", points, student_id)
            return False

        student.loyalty_account.add_points(points, description)
        self.user_repository.update(student)
        logger.info("Awarded %s points to student %s", points, student_id)
        return True

    def award_points_from_order(self, student_id: str, order_amount, order_id: str) -> int:
        """
        Award the points an order total is worth.

        An amount worth 0 points does nothing: no lookup, no update, no
        notification.

        Returns:
            Points awarded (0 if nothing was earned or the student is unknown)
        """
        points = self.calculate_points_earned(order_amount)
        if points <= 0:
            return 0

        description = f"Points earned from order {order_id} ({format_money(order_amount)})"
        if not self.award_points(student_id, points, description):
            return 0

        self.notifier.notify_points_earned(student_id, points, order_id)
        signals.points_earned.send(
            sender=self.__class__,
            student_id=student_id,
            points=points,
            order_id=order_id,
        )
        return points

    # ------------------------------------------------------------------
    # Redemption
    # ------------------------------------------------------------------

    def can_redeem_points(self, student_id: str, points: int) -> bool:
        """False below MIN_REDEMPTION_POINTS, for unknown students, or when the balance is short."""
        if student_id is None or points < cafeteria_settings.MIN_REDEMPTION_POINTS:
            return False

        student = self._get_student(student_id)
        if student is None:
            return False
        return student.can_redeem_points(points)

    def redeem_points_for_discount(
        self,
        student_id: str,
        points: int,
        description: str = "Points redeemed for discount",
    ) -> Decimal:
        """
        Redeem points and return the discount they buy.

        Args:
            student_id: Student ID
            points: Points to redeem
            description: Ledger description

        Returns:
            Discount amount (points * DISCOUNT_PER_POINT)

        Raises:
            ValidationError: LOYALTY_INSUFFICIENT_POINTS if the points cannot
                be redeemed (below minimum, unknown student, low balance)
        """
        if not self.can_redeem_points(student_id, points):
            logger.warning("Rejected redemption of %s points for student %s", points, student_id)
            raise ValidationError(
                "LOYALTY_INSUFFICIENT_POINTS",
                message=f"Cannot redeem {points} points for student {student_id}",
                student_id=student_id,
                points=points,
            )

        discount = self.calculate_discount_from_points(points)
        self._redeem(student_id, points, description, discount)
        return discount

    def calculate_discount_from_points(self, points: int) -> Decimal:
        return discount_for_points(points)

    def calculate_points_for_discount(self, discount_amount) -> int:
        """Points needed for a discount, rounded down."""
        return points_for_discount(discount_amount)

    def get_available_redemptions(self, current_points: int) -> list[RedemptionOption]:
        """Reward tiers affordable with current_points, cheapest first."""
        return [
            _tier_option(points, discount, free_item)
            for points, discount, free_item in _REDEMPTION_TIERS
            if current_points >= points
        ]

    def redeem_reward(self, student_id: str, points_required: int) -> RedemptionOption:
        """
        Redeem one of the fixed reward tiers.

        Discount tiers go through redeem_points_for_discount(). Free-item
        tiers take the points and notify with a 0.00 discount.

        Raises:
            CafeteriaError: LOYALTY_UNKNOWN_TIER if no tier costs points_required
            ValidationError: LOYALTY_INSUFFICIENT_POINTS if the balance is short
        """
        tier = next((t for t in _REDEMPTION_TIERS if t[0] == points_required), None)
        if tier is None:
            raise CafeteriaError("LOYALTY_UNKNOWN_TIER", points=points_required)

        option = _tier_option(*tier)
        if not option.is_free_item:
            self.redeem_points_for_discount(student_id, option.points_required, option.description)
            return option

        if not self.can_redeem_points(student_id, option.points_required):
            raise ValidationError(
                "LOYALTY_INSUFFICIENT_POINTS",
                message=f"Cannot redeem {option.points_required} points for student {student_id}",
                student_id=student_id,
                points=option.points_required,
            )
        self._redeem(student_id, option.points_required, option.description, ZERO)
        return option

    # ------------------------------------------------------------------
    # Balance and history
    # ------------------------------------------------------------------

    def get_points_balance(self, student_id: str) -> int:
        """Current balance. Returns 0 for unknown students."""
        student = self._get_student(student_id)
        return student.loyalty_points if student else 0

    def get_transaction_history(self, student_id: str) -> tuple[LoyaltyTransaction, ...]:
        """Full ledger, oldest first. Empty for unknown students."""
        student = self._get_student(student_id)
        if student is None:
            return ()
        return student.loyalty_account.transactions

    def get_recent_transactions(self, student_id: str, limit: int) -> list[LoyaltyTransaction]:
        """Most recent transactions first, in reverse ledger order."""
        if limit <= 0:
            return []
        history = self.get_transaction_history(student_id)
        return list(history[::-1][:limit])

    def restore_history(self, student_id: str, entries) -> bool:
        """
        Replay persisted ledger entries onto a student's account.

        Args:
            student_id: Student ID
            entries: Iterable of (transaction_type, points, description, timestamp)

        Returns:
            True if replayed, False if the student is unknown

        Raises:
            ValidationError: If an entry has points <= 0. The account is left
                exactly as it was before the call.
        """
        student = self._get_student(student_id)
        if student is None:
            return False

        account = student.loyalty_account
        with account.restoring():
            for transaction_type, points, description, timestamp in entries:
                if transaction_type == TransactionType.EARNED:
                    account.add_points(points, description, timestamp=timestamp)
                else:
                    account.add_redemption_transaction(points, description, timestamp=timestamp)

        self.user_repository.update(student)
        logger.info("Restored loyalty history for student %s: balance %s", student_id, account.points)
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _get_student(self, student_id: str) -> Student | None:
        if student_id is None:
            return None
        user = self.user_repository.find_student_by_student_id(student_id)
        if user is None or user.kind != UserType.STUDENT:
            return None
        return user

    def _redeem(self, student_id: str, points: int, description: str, discount: Decimal) -> None:
        student = self._get_student(student_id)
        if not student.loyalty_account.redeem_points(points, description):
            raise ValidationError(
                "LOYALTY_INSUFFICIENT_POINTS",
                message=f"Cannot redeem {points} points for student {student_id}",
                student_id=student_id,
                points=points,
            )
        self.user_repository.update(student)
        logger.info("Student %s redeemed %s points (%s)", student_id, points, format_money(discount))

        self.notifier.notify_points_redeemed(student_id, points, discount)
        signals.points_redeemed.send(
            sender=self.__class__,
            student_id=student_id,
            points=points,
            discount_amount=discount,
        )
