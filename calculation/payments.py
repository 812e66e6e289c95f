# calculation/payments.py
"""Allocation of payments against accrued interest and principal."""
from decimal import Decimal
from typing import Any, Iterable, Tuple

from models.interest_data import Payment, PaymentAllocation, as_decimal


def allocate_payment(payment: Payment, interest_accrued: Any, principal_outstanding: Any) -> PaymentAllocation:
    """
    Applies a payment to accrued interest first, then to principal.

    Principal is never paid below zero: any amount beyond the interest and
    the outstanding principal is booked as interest, so it offsets interest
    that accrues later.
    """
    interest_accrued = max(as_decimal(interest_accrued, 'interest_accrued', allow_negative=True), Decimal('0'))
    principal_outstanding = max(
        as_decimal(principal_outstanding, 'principal_outstanding', allow_negative=True), Decimal('0'))

    interest_applied = min(payment.amount, interest_accrued)
    principal_applied = payment.amount - interest_applied
    if principal_applied > principal_outstanding:
        principal_applied = principal_outstanding
        interest_applied = payment.amount - principal_applied
    return PaymentAllocation(
        payment=payment,
        interest_applied=interest_applied,
        principal_applied=principal_applied,
        remaining_principal=principal_outstanding - principal_applied,
    )


def applied_totals(allocations: Iterable[PaymentAllocation]) -> Tuple[Decimal, Decimal]:
    """(interest paid, principal paid) across prior allocations."""
    interest_paid = Decimal('0')
    principal_paid = Decimal('0')
    for allocation in allocations:
        interest_paid += allocation.interest_applied
        principal_paid += allocation.principal_applied
    return interest_paid, principal_paid
