"""
Cafeteria signals - public event API.

Emitted signals:
- points_earned: Emitted by LoyaltyService.award_points_from_order()
- points_redeemed: Emitted by LoyaltyService.redeem_points_for_discount() and redeem_reward()
- order_status_changed: Emitted by OrderService on every status change
- student_registered: Emitted by AuthenticationService.register_student()
"""

from django.dispatch import Signal

# Loyalty signals (emitted by LoyaltyService)
points_earned = Signal()  # student_id, points, order_id
points_redeemed = Signal()  # student_id, points, discount_amount

# Order signals (emitted by OrderService)
order_status_changed = Signal()  # sender=Order, order, old_status, new_status

# Registration signals (emitted by AuthenticationService)
student_registered = Signal()  # sender=Student, student
