"""
Loan Accrual Module

Computes what a loan owes as of a caller-supplied "now": the fixed base
interest, compounding overdue interest for every month the loan stays
unpaid past its due date, and the remaining balance after payments.

Overdue policy
--------------
Charges fall on monthly milestones m_k = end_date + k calendar months
(k = 0, 1, 2, ...). With the default clamp policy they are computed from
the due date itself so that day-of-month clamping never drifts; with the
rollover policy a cursor advances one month from the previous milestone.
A milestone is charged only while m_k < now.

At each milestone the compounding balance is

    principal + overdue interest charged so far - payments dated <= m_k

and the charge is that balance times the loan rate. Base interest is a
one-off charge and is not part of the compounding balance. Once the
balance is settled (at or below the settlement tolerance) charging stops.
"""

from decimal import Decimal
from datetime import datetime, timedelta
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from enum import Enum

from .config import BanquitoConfig, get_config
from .dates import MonthOverflowPolicy, add_months, step_month, to_datetime
from .logging_config import get_logger
from .models import BorrowerType, Loan, LoanPayment, LoanStatus, PaymentType
from .money import ZERO, percentage_of, sum_amounts


class LoanStanding(Enum):
    """Display standing of a loan at a point in time"""
    ACTIVE = "active"
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"
    PAID = "paid"


@dataclass(frozen=True)
class OverdueCharge:
    """Interest charged at one overdue milestone"""
    milestone: datetime
    balance: Decimal          # Compounding balance the charge was computed on
    interest: Decimal


@dataclass(frozen=True)
class AccrualResult:
    """Amounts owed on a loan as of a given time"""
    loan_id: str
    principal: Decimal
    base_interest: Decimal
    overdue_interest: Decimal
    total_interest: Decimal
    total_due: Decimal
    total_paid: Decimal
    remaining: Decimal
    months_overdue: int
    is_overdue: bool
    status: LoanStatus
    breakdown: Tuple[OverdueCharge, ...] = ()

    @property
    def periods_charged(self) -> int:
        return len(self.breakdown)

    @property
    def is_settled(self) -> bool:
        return self.status == LoanStatus.PAID


@dataclass(frozen=True)
class StatementLine:
    """One line of a loan statement with the balance after it"""
    date: datetime
    kind: str                                  # "payment" or "charge"
    amount: Decimal
    balance: Decimal
    payment_type: Optional[PaymentType] = None
    payment_id: Optional[str] = None


class LoanAccrualEngine:
    """
    Evaluates loans against an explicit "now"

    The engine holds configuration only, so one instance can serve any
    number of callers concurrently.
    """

    def __init__(self, config: Optional[BanquitoConfig] = None):
        self.config = config or get_config()
        self.tolerance = Decimal(self.config.settlement_tolerance)
        self.overflow_policy = MonthOverflowPolicy(self.config.month_overflow_policy)
        self.logger = get_logger("banquito.loans")

    def compute(self, loan: Loan, now) -> AccrualResult:
        """
        Compute base interest, overdue interest and remaining balance

        Args:
            loan: Loan snapshot with its payments
            now: Evaluation time (date, datetime or ISO string)

        Returns:
            AccrualResult for the loan at now

        Raises:
            InvalidInputError: If now is missing or malformed
        """
        now = to_datetime(now, "now")

        base_interest = percentage_of(loan.principal, loan.interest_rate)
        total_paid = loan.total_paid
        is_overdue = now > loan.end_date and loan.status != LoanStatus.PAID

        if is_overdue:
            breakdown = tuple(self._overdue_charges(loan, now))
            overdue_interest = sum_amounts(charge.interest for charge in breakdown)
            months_overdue = (now - loan.end_date).days // self.config.overdue_day_basis
        else:
            breakdown = ()
            overdue_interest = ZERO
            months_overdue = 0

        total_interest = base_interest + overdue_interest
        total_due = loan.principal + total_interest
        remaining = max(ZERO, total_due - total_paid)

        status = loan.status
        if remaining <= self.tolerance:
            status = LoanStatus.PAID

        self.logger.debug(
            f"Loan {loan.id} at {now.isoformat()}: due {total_due}, paid {total_paid}, "
            f"{len(breakdown)} overdue charges"
        )

        return AccrualResult(
            loan_id=loan.id,
            principal=loan.principal,
            base_interest=base_interest,
            overdue_interest=overdue_interest,
            total_interest=total_interest,
            total_due=total_due,
            total_paid=total_paid,
            remaining=remaining,
            months_overdue=months_overdue,
            is_overdue=is_overdue,
            status=status,
            breakdown=breakdown
        )

    def _overdue_charges(self, loan: Loan, now: datetime) -> List[OverdueCharge]:
        payments = sorted(loan.payments, key=lambda p: p.date)
        charges = []
        overdue = ZERO
        paid = ZERO
        next_payment = 0

        k = 0
        milestone = loan.end_date
        while milestone < now:
            # Payments dated on or before the milestone reduce its balance
            while next_payment < len(payments) and payments[next_payment].date <= milestone:
                paid += payments[next_payment].amount
                next_payment += 1

            balance = loan.principal + overdue - paid
            if balance <= self.tolerance:
                break

            interest = percentage_of(balance, loan.interest_rate)
            overdue += interest
            charges.append(OverdueCharge(milestone=milestone, balance=balance, interest=interest))

            k += 1
            milestone = step_month(loan.end_date, milestone, k, self.overflow_policy)

        return charges

    def paid_by_type(self, loan: Loan) -> Dict[PaymentType, Decimal]:
        """Payments split into principal and interest buckets"""
        totals = {payment_type: ZERO for payment_type in PaymentType}
        for payment in loan.payments:
            totals[payment.payment_type] += payment.amount
        return totals

    def pending_principal(self, loan: Loan) -> Decimal:
        """Principal not yet covered by principal payments"""
        paid = self.paid_by_type(loan)[PaymentType.PRINCIPAL]
        return max(ZERO, loan.principal - paid)

    def pending_interest(self, loan: Loan, now) -> Decimal:
        """Total interest (base + overdue) not yet covered by interest payments"""
        accrual = self.compute(loan, now)
        paid = self.paid_by_type(loan)[PaymentType.INTEREST]
        return max(ZERO, accrual.total_interest - paid)

    def next_due_date(self, loan: Loan, now) -> datetime:
        """
        Rolling due date shown to the borrower

        One month after the latest principal payment, or the loan's end date
        when no principal has been paid, advanced month by month until it is
        no longer before the start of now's day.
        """
        now = to_datetime(now, "now")
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)

        principal_payments = [p for p in loan.payments if p.payment_type == PaymentType.PRINCIPAL]
        if principal_payments:
            latest = max(principal_payments, key=lambda p: p.date)
            anchor = add_months(latest.date, 1, self.overflow_policy)
        else:
            anchor = loan.end_date

        k = 0
        due = anchor
        while due < today:
            k += 1
            due = step_month(anchor, due, k, self.overflow_policy)
        return due

    def classify(self, loan: Loan, now, accrual: Optional[AccrualResult] = None) -> LoanStanding:
        """Standing used for filtering: paid, overdue, due soon or active"""
        now = to_datetime(now, "now")
        accrual = accrual or self.compute(loan, now)

        if accrual.is_settled:
            return LoanStanding.PAID
        if accrual.is_overdue:
            return LoanStanding.OVERDUE
        if loan.end_date - now <= timedelta(days=self.config.due_soon_days):
            return LoanStanding.DUE_SOON
        return LoanStanding.ACTIVE

    def statement(self, loan: Loan, now) -> List[StatementLine]:
        """
        Chronological payments and overdue charges with running balance

        The opening balance is principal plus base interest. Payments that
        share a timestamp with a charge are listed first, matching how the
        accrual applies them. Displayed balances never go below zero.
        """
        accrual = self.compute(loan, now)

        events: List[Tuple[datetime, int, object]] = []
        for payment in loan.payments:
            events.append((payment.date, 0, payment))
        for charge in accrual.breakdown:
            events.append((charge.milestone, 1, charge))
        events.sort(key=lambda event: (event[0], event[1]))

        running = loan.principal + accrual.base_interest
        lines = []
        for date, _, item in events:
            if isinstance(item, LoanPayment):
                running -= item.amount
                lines.append(StatementLine(
                    date=date, kind="payment", amount=item.amount,
                    balance=max(ZERO, running), payment_type=item.payment_type,
                    payment_id=item.id
                ))
            else:
                running += item.interest
                lines.append(StatementLine(
                    date=date, kind="charge", amount=item.interest,
                    balance=max(ZERO, running)
                ))
        return lines

    def default_rate_for(self, borrower_type: BorrowerType) -> Decimal:
        """Default interest rate offered to members and to external clients"""
        if borrower_type == BorrowerType.EXTERNAL:
            return Decimal(self.config.external_interest_rate)
        return Decimal(self.config.member_interest_rate)
