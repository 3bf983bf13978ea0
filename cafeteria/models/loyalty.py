"""Loyalty models - points balance and transaction ledger."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from cafeteria.exceptions import CafeteriaError, ValidationError

logger = logging.getLogger(__name__)


class TransactionType(models.TextChoices):
    """Loyalty transaction types."""

    EARNED = "earned", _("Earned")
    REDEEMED = "redeemed", _("Redeemed")


@dataclass(frozen=True)
class LoyaltyTransaction:
    """
    Immutable record of a loyalty transaction.

    points is always positive; transaction_type gives the direction.
    """

    transaction_type: TransactionType
    points: int
    description: str
    balance_after: int
    timestamp: datetime = field(default_factory=timezone.now)

    def __str__(self):
        sign = "+" if self.transaction_type == TransactionType.EARNED else "-"
        return f"{sign}{self.points}pts - {self.description}"

    @property
    def signed_points(self) -> int:
        """Positive for earned, negative for redeemed."""
        if self.transaction_type == TransactionType.EARNED:
            return self.points
        return -self.points


class LoyaltyAccount:
    """
    Student loyalty account.

    One account per student, created with a zero balance. The balance only
    changes through add_points / redeem_points (live path) or
    add_redemption_transaction inside restoring() (history replay). Every
    change appends a LoyaltyTransaction; transactions are never modified.

    Not thread-safe: callers serialize mutations per account.
    """

    def __init__(self):
        self._points = 0
        self._transactions: list[LoyaltyTransaction] = []
        self._restoring = False

    def __repr__(self):
        return f"LoyaltyAccount(points={self._points}, transactions={len(self._transactions)})"

    @property
    def points(self) -> int:
        return self._points

    @property
    def transactions(self) -> tuple[LoyaltyTransaction, ...]:
        """Snapshot of the ledger, oldest first."""
        return tuple(self._transactions)

    @property
    def lifetime_points(self) -> int:
        """Total points ever earned (never decreases)."""
        return sum(
            tx.points for tx in self._transactions if tx.transaction_type == TransactionType.EARNED
        )

    @property
    def is_restoring(self) -> bool:
        return self._restoring

    def add_points(
        self,
        points: int,
        description: str = "Points earned from order",
        timestamp: datetime | None = None,
    ) -> LoyaltyTransaction:
        """
        Add points to the balance.

        Raises:
            ValidationError: If points <= 0
        """
        if points <= 0:
            raise ValidationError("LOYALTY_INVALID_POINTS", message="Points to add must be positive")

        self._points += points
        return self._append(TransactionType.EARNED, points, description, timestamp)

    def can_redeem(self, points: int) -> bool:
        return points > 0 and points <= self._points

    def redeem_points(self, points: int, description: str = "Points redeemed") -> bool:
        """
        Redeem points from the balance.

        Returns:
            True if redeemed, False (nothing changed) if the balance is too low
            or points <= 0
        """
        if not self.can_redeem(points):
            return False

        self._points -= points
        self._append(TransactionType.REDEEMED, points, description)
        return True

    @contextmanager
    def restoring(self):
        """
        Enable the history replay path.

        If the block raises, the balance and ledger are put back as they
        were on entry.

        Usage:
            with account.restoring():
                account.add_points(120, "Order ORD-1A2B3C4D")
                account.add_redemption_transaction(50, "Redeemed for order ORD-1A2B3C4D")
        """
        previous = self._restoring
        points, transactions = self._points, list(self._transactions)
        self._restoring = True
        try:
            yield self
        except Exception:
            # Replay is all or nothing
            self._points, self._transactions = points, transactions
            raise
        finally:
            self._restoring = previous
            if not previous and self._points < 0:
                logger.warning("Loyalty account restored with negative balance: %s", self._points)

    def add_redemption_transaction(
        self,
        points: int,
        description: str,
        timestamp: datetime | None = None,
    ) -> LoyaltyTransaction:
        """
        Replay an already-validated historical redemption.

        Skips the balance check, so the balance may go negative while
        restoring. Not part of live redemption.

        Raises:
            ValidationError: If points <= 0
            CafeteriaError: LOYALTY_RESTORE_ONLY outside restoring()
        """
        if points <= 0:
            raise ValidationError("LOYALTY_INVALID_POINTS", message="Points to redeem must be positive")
        if not self._restoring:
            raise CafeteriaError("LOYALTY_RESTORE_ONLY")

        self._points -= points
        return self._append(TransactionType.REDEEMED, points, description, timestamp)

    def _append(
        self,
        transaction_type: TransactionType,
        points: int,
        description: str,
        timestamp: datetime | None = None,
    ) -> LoyaltyTransaction:
        tx = LoyaltyTransaction(
            transaction_type=transaction_type,
            points=points,
            description=description,
            balance_after=self._points,
            timestamp=timestamp or timezone.now(),
        )
        self._transactions.append(tx)
        return tx
