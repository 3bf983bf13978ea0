"""Tests for Cafeteria domain models."""

import logging
import re
from decimal import Decimal

import pytest

from cafeteria.exceptions import CafeteriaError, ValidationError
from cafeteria.models import (
    LoyaltyAccount,
    MenuCategory,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    Permission,
    StaffRole,
    TransactionType,
    UserType,
    can_transition,
    permissions_for,
)


def _item(price, item_id="ITEM_1", available=True):
    return MenuItem(
        item_id=item_id,
        name="Test Item",
        price=price,
        category=MenuCategory.SNACK,
        available=available,
    )


class TestMenuItem:
    """Tests for MenuItem."""

    def test_formatted_price(self, burger):
        """Price is displayed with the currency code and two decimals."""
        assert burger.formatted_price == "EGP 45.00"

    def test_float_price_keeps_its_decimal_value(self):
        """Floats go through str, so 9.99 stays 9.99."""
        item = _item(9.99)
        assert item.price == Decimal("9.99")

    def test_negative_price_raises(self, burger):
        """Negative price is rejected on construction and on assignment."""
        with pytest.raises(ValidationError) as exc_info:
            _item(Decimal("-1.00"))
        assert exc_info.value.code == "INVALID_PRICE"

        with pytest.raises(ValidationError):
            burger.price = Decimal("-0.01")
        assert burger.price == Decimal("45.00")

    def test_non_numeric_price_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            _item("free")
        assert exc_info.value.code == "INVALID_AMOUNT"

    def test_zero_price_allowed(self):
        """Reward items can cost nothing."""
        assert _item(Decimal("0.00")).price == Decimal("0.00")

    def test_item_id_immutable(self, burger):
        with pytest.raises(AttributeError):
            burger.item_id = "OTHER"

    def test_blank_name_raises(self):
        with pytest.raises(ValidationError):
            MenuItem(item_id="X", name="  ", price=Decimal("1.00"), category=MenuCategory.SNACK)

    def test_equality_by_item_id(self, burger):
        """Items with the same id are equal regardless of other fields."""
        same = MenuItem(
            item_id=burger.item_id,
            name="Renamed",
            price=Decimal("1.00"),
            category=MenuCategory.DRINK,
        )
        assert same == burger
        assert hash(same) == hash(burger)
        assert len({same, burger}) == 1

    def test_update_refreshes_updated_at(self, burger):
        before = burger.updated_at
        burger.name = "Classic Burger XL"
        assert burger.updated_at >= before

    def test_is_affordable_for(self, burger):
        assert burger.is_affordable_for(Decimal("45.00")) is True
        assert burger.is_affordable_for(50) is True
        assert burger.is_affordable_for(Decimal("44.99")) is False


class TestOrderItems:
    """Tests for adding, removing and updating order lines."""

    def test_order_id_format(self, order):
        assert re.fullmatch(r"ORD-[0-9A-F]{8}", order.order_id)

    def test_new_order_defaults(self, order):
        assert order.status == OrderStatus.PENDING
        assert order.is_empty()
        assert order.total_amount == Decimal("0.00")
        assert order.loyalty_points_earned == 0

    def test_same_item_quantities_are_summed(self, order, burger):
        """Adding an item already in the order merges the lines."""
        order.add_item(burger, 2)
        order.add_item(burger, 3)

        assert len(order.items) == 1
        line = order.items[0]
        assert line.quantity == 5
        assert line.subtotal == Decimal("225.00")
        assert order.total_amount == Decimal("225.00")

    def test_distinct_items_are_appended_in_order(self, order, burger, fries):
        order.add_item(burger, 1)
        order.add_item(fries, 2)

        assert [line.item_id for line in order.items] == [burger.item_id, fries.item_id]
        assert order.total_item_count == 3
        assert order.total_amount == Decimal("95.00")
        assert order.unique_menu_items() == [burger, fries]

    def test_items_is_a_snapshot(self, order, burger):
        order.add_item(burger, 1)
        items = order.items

        assert isinstance(items, tuple)
        order.add_item(_item(Decimal("1.00"), item_id="OTHER"), 1)
        assert len(items) == 1

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_add_non_positive_quantity_raises(self, order, burger, quantity):
        with pytest.raises(ValidationError) as exc_info:
            order.add_item(burger, quantity)
        assert exc_info.value.code == "INVALID_QUANTITY"
        assert order.is_empty()

    def test_add_none_raises(self, order):
        with pytest.raises(ValidationError):
            order.add_item(None, 1)

    def test_add_unavailable_raises(self, order):
        with pytest.raises(ValidationError) as exc_info:
            order.add_item(_item(Decimal("5.00"), available=False), 1)
        assert exc_info.value.code == "MENU_ITEM_UNAVAILABLE"

    def test_remove_item(self, order, burger, fries):
        order.add_item(burger, 1)
        order.add_item(fries, 1)

        assert order.remove_item(burger.item_id) is True
        assert order.total_amount == Decimal("25.00")

    def test_remove_unknown_item_leaves_totals(self, order, burger):
        order.add_item(burger, 2)

        assert order.remove_item("UNKNOWN") is False
        assert order.total_amount == Decimal("90.00")
        assert order.loyalty_points_earned == 9

    def test_update_quantity(self, order, burger):
        order.add_item(burger, 1)

        assert order.update_item_quantity(burger.item_id, 4) is True
        assert order.get_item(burger.item_id).quantity == 4
        assert order.total_amount == Decimal("180.00")

    def test_update_unknown_item_leaves_totals(self, order, burger):
        order.add_item(burger, 1)

        assert order.update_item_quantity("UNKNOWN", 3) is False
        assert order.total_amount == Decimal("45.00")

    def test_update_quantity_to_zero_removes(self, order, burger):
        order.add_item(burger, 1)

        assert order.update_item_quantity(burger.item_id, 0) is True
        assert order.is_empty()
        assert order.total_amount == Decimal("0.00")

    def test_order_item_rejects_non_positive_quantity(self, burger):
        line = OrderItem(burger, 1)
        with pytest.raises(ValidationError):
            line.quantity = 0
        assert line.quantity == 1
        assert line.subtotal == Decimal("45.00")

    def test_set_notes(self, order):
        order.set_notes("No onions")
        assert order.notes == "No onions"
        order.set_notes(None)
        assert order.notes == ""


class TestOrderTotals:
    """Tests for order pricing and points."""

    @pytest.mark.parametrize(
        "price,points",
        [
            ("0.00", 0),
            ("9.99", 0),
            ("10.00", 1),
            ("50.00", 5),
            ("100.00", 10),
        ],
    )
    def test_points_earned_from_total(self, order, price, points):
        order.add_item(_item(Decimal(price)), 1)
        assert order.total_amount == Decimal(price)
        assert order.loyalty_points_earned == points

    def test_loyalty_discount(self, order, meal):
        """100.00 order with a 10.00 discount totals 90.00 and earns 9 points."""
        order.add_item(meal, 1)

        assert order.apply_loyalty_discount(50, Decimal("10.00")) is True
        assert order.total_amount == Decimal("90.00")
        assert order.loyalty_points_earned == 9
        assert order.loyalty_points_redeemed == 50
        assert order.discount_amount == Decimal("10.00")

    def test_discount_never_makes_total_negative(self, order, water):
        order.add_item(water, 1)
        order.apply_loyalty_discount(500, Decimal("100.00"))

        assert order.total_amount == Decimal("0.00")
        assert order.loyalty_points_earned == 0

    def test_discount_survives_item_changes(self, order, meal, fries):
        order.add_item(meal, 1)
        order.apply_loyalty_discount(50, Decimal("10.00"))
        order.add_item(fries, 1)

        assert order.total_amount == Decimal("115.00")

    @pytest.mark.parametrize("points,discount", [(0, Decimal("10.00")), (-5, Decimal("10.00")), (50, Decimal("0.00"))])
    def test_invalid_discount_changes_nothing(self, order, meal, points, discount):
        order.add_item(meal, 1)

        assert order.apply_loyalty_discount(points, discount) is False
        assert order.total_amount == Decimal("100.00")
        assert order.loyalty_points_redeemed == 0
        assert order.discount_amount == Decimal("0.00")

    def test_formatted_total(self, order, burger):
        order.add_item(burger, 1)
        assert order.formatted_total == "EGP 45.00"

    def test_totals_are_logged_at_debug(self, order, burger, caplog):
        with caplog.at_level(logging.DEBUG, logger="cafeteria.models.order"):
            order.add_item(burger, 1)
        assert order.order_id in caplog.text


class TestOrderStatus:
    """Tests for order status predicates and transitions."""

    @pytest.mark.parametrize(
        "status,cancellable,completed",
        [
            (OrderStatus.PENDING, True, False),
            (OrderStatus.CONFIRMED, True, False),
            (OrderStatus.PREPARING, False, False),
            (OrderStatus.READY, False, False),
            (OrderStatus.COMPLETED, False, True),
            (OrderStatus.CANCELLED, False, True),
        ],
    )
    def test_predicates(self, order, status, cancellable, completed):
        order.update_status(status)

        assert order.can_be_cancelled() is cancellable
        assert order.is_completed() is completed
        assert not (order.can_be_cancelled() and order.is_completed())

    def test_update_status_refreshes_timestamp(self, order):
        before = order.status_updated_time
        order.update_status(OrderStatus.CONFIRMED)

        assert order.status == OrderStatus.CONFIRMED
        assert order.status_updated_time >= before

    def test_ready_label(self):
        assert OrderStatus.READY.label == "Ready for Pickup"

    @pytest.mark.parametrize(
        "current,new,allowed",
        [
            (OrderStatus.PENDING, OrderStatus.CONFIRMED, True),
            (OrderStatus.PENDING, OrderStatus.CANCELLED, True),
            (OrderStatus.PENDING, OrderStatus.READY, False),
            (OrderStatus.CONFIRMED, OrderStatus.PREPARING, True),
            (OrderStatus.CONFIRMED, OrderStatus.CANCELLED, True),
            (OrderStatus.PREPARING, OrderStatus.READY, True),
            (OrderStatus.PREPARING, OrderStatus.CANCELLED, False),
            (OrderStatus.READY, OrderStatus.COMPLETED, True),
            (OrderStatus.COMPLETED, OrderStatus.PENDING, False),
            (OrderStatus.CANCELLED, OrderStatus.CONFIRMED, False),
        ],
    )
    def test_can_transition(self, current, new, allowed):
        assert can_transition(current, new) is allowed


class TestLoyaltyAccount:
    """Tests for the loyalty ledger."""

    def test_new_account_is_empty(self):
        account = LoyaltyAccount()
        assert account.points == 0
        assert account.transactions == ()
        assert account.lifetime_points == 0

    @pytest.mark.parametrize("points", [0, -10])
    def test_add_non_positive_raises(self, points):
        account = LoyaltyAccount()
        with pytest.raises(ValidationError) as exc_info:
            account.add_points(points, "bad")
        assert exc_info.value.code == "LOYALTY_INVALID_POINTS"
        assert account.transactions == ()

    def test_balance_matches_ledger(self):
        """Balance is always earned minus redeemed."""
        account = LoyaltyAccount()
        account.add_points(120, "Order 1")
        account.add_points(30, "Order 2")
        assert account.redeem_points(50, "Discount") is True

        earned = sum(tx.points for tx in account.transactions if tx.transaction_type == TransactionType.EARNED)
        redeemed = sum(tx.points for tx in account.transactions if tx.transaction_type == TransactionType.REDEEMED)
        assert account.points == earned - redeemed == 100
        assert account.lifetime_points == 150
        assert [tx.balance_after for tx in account.transactions] == [120, 150, 100]

    def test_over_redeem_changes_nothing(self):
        account = LoyaltyAccount()
        account.add_points(40, "Order")

        assert account.redeem_points(41, "Too much") is False
        assert account.points == 40
        assert len(account.transactions) == 1

    def test_can_redeem(self):
        account = LoyaltyAccount()
        account.add_points(40, "Order")

        assert account.can_redeem(40) is True
        assert account.can_redeem(41) is False
        assert account.can_redeem(0) is False

    def test_transactions_is_a_snapshot(self):
        account = LoyaltyAccount()
        account.add_points(10, "Order")
        snapshot = account.transactions

        account.add_points(10, "Order")
        assert isinstance(snapshot, tuple)
        assert len(snapshot) == 1

    def test_transaction_str(self):
        account = LoyaltyAccount()
        tx = account.add_points(12, "Order ORD-1")
        assert str(tx) == "+12pts - Order ORD-1"
        assert tx.signed_points == 12

    def test_redemption_transaction_outside_restore_raises(self):
        account = LoyaltyAccount()
        account.add_points(100, "Order")

        with pytest.raises(CafeteriaError) as exc_info:
            account.add_redemption_transaction(50, "Replay")
        assert exc_info.value.code == "LOYALTY_RESTORE_ONLY"
        assert account.points == 100

    def test_restore_allows_negative_balance_and_warns(self, caplog):
        account = LoyaltyAccount()

        with caplog.at_level(logging.WARNING, logger="cafeteria.models.loyalty"):
            with account.restoring():
                assert account.is_restoring
                account.add_points(20, "Old order")
                account.add_redemption_transaction(50, "Old redemption")

        assert account.points == -30
        assert not account.is_restoring
        assert "negative balance" in caplog.text

    def test_restore_rejects_non_positive_points(self):
        account = LoyaltyAccount()
        with account.restoring():
            with pytest.raises(ValidationError):
                account.add_redemption_transaction(0, "Replay")

    def test_restore_rolls_back_on_error(self):
        account = LoyaltyAccount()
        account.add_points(40, "Order")

        with pytest.raises(ValidationError):
            with account.restoring():
                account.add_points(100, "Old order")
                account.add_redemption_transaction(0, "Bad replay")

        assert account.points == 40
        assert len(account.transactions) == 1
        assert not account.is_restoring


class TestUsers:
    """Tests for the Student / Staff variants and permissions."""

    def test_student_starts_with_empty_account(self, student):
        assert student.kind == UserType.STUDENT
        assert student.loyalty_points == 0
        assert student.can_redeem_points(10) is False

    def test_check_password(self, student):
        assert student.check_password("student123") is True
        assert student.check_password("wrong") is False
        assert student.password != "student123"

    def test_student_permissions(self, student):
        assert permissions_for(student) == {Permission.PLACE_ORDERS, Permission.REDEEM_POINTS}

    @pytest.mark.parametrize(
        "role,menu,orders,reports",
        [
            (StaffRole.ADMIN, True, True, True),
            (StaffRole.CASHIER, False, True, False),
            (StaffRole.KITCHEN, False, True, False),
            (StaffRole.MANAGER, True, False, True),
        ],
    )
    def test_staff_permissions(self, cashier, role, menu, orders, reports):
        cashier.role = role

        assert cashier.kind == UserType.STAFF
        assert cashier.can_manage_menu() is menu
        assert cashier.can_process_orders() is orders
        assert cashier.can_view_reports() is reports
        assert Permission.PLACE_ORDERS not in permissions_for(cashier)

    def test_unknown_kind_raises(self, student):
        object.__setattr__(student, "kind", "robot")
        with pytest.raises(ValueError):
            permissions_for(student)
