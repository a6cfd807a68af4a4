"""
Profit Distribution Module

Year-end report: every identity receives its own savings plus an equal
share of the interest collected on loans and of the net profit of the
year's activities. Shares are split across ALL identities, whether or not
an identity borrowed or sold tickets itself.

Amounts are kept at full Decimal precision; to_dict() rounds for display.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .activities import ActivityLedger
from .config import BanquitoConfig, get_config
from .dates import to_datetime
from .identities import IdentityResolver, MemberIdentity, identity_label
from .loans import LoanAccrualEngine, LoanStanding
from .logging_config import get_logger, log_action
from .models import Activity, Loan, MemberActivity, MonthlyFee, PaymentType, WeeklyPayment
from .money import ZERO, round_display, sum_amounts
from .savings import SavingsLedger, SavingsResult, latest_per_slot


@dataclass(frozen=True)
class IdentityDistribution:
    """What one identity receives at year end"""
    identity: MemberIdentity
    label: str
    savings: SavingsResult
    loan_share: Decimal
    activity_share: Decimal

    @property
    def total_receive(self) -> Decimal:
        return self.savings.total + self.loan_share + self.activity_share


@dataclass(frozen=True)
class YearReport:
    """Per-identity and grand-total distribution for one year"""
    year: int
    rows: Tuple[IdentityDistribution, ...]
    total_savings: Decimal
    interest_collected: Decimal
    activity_net_profit: Decimal
    loan_share_per_identity: Decimal
    activity_share_per_identity: Decimal
    unattributed_savings: Decimal = ZERO

    @property
    def identity_count(self) -> int:
        return len(self.rows)

    @property
    def grand_total_receive(self) -> Decimal:
        return sum_amounts(row.total_receive for row in self.rows)

    @property
    def shared_pool(self) -> Decimal:
        """Interest collected plus activity net profit"""
        return self.interest_collected + self.activity_net_profit

    @property
    def undistributed(self) -> Decimal:
        """Shared profits no identity received; non-zero only when there are no identities"""
        if self.rows:
            return ZERO
        return self.shared_pool

    @property
    def expected_total(self) -> Decimal:
        """Savings plus every profit collected in the year"""
        return self.total_savings + self.shared_pool

    @property
    def reconciliation_difference(self) -> Decimal:
        """Distributed plus undistributed minus expected; zero up to Decimal precision"""
        return self.grand_total_receive + self.undistributed - self.expected_total

    def to_dict(self, precision: int = 2) -> Dict[str, Any]:
        """Presentation form with amounts rounded to display precision"""
        def fmt(value: Decimal) -> str:
            return str(round_display(value, precision))

        return {
            "year": self.year,
            "identity_count": self.identity_count,
            "total_savings": fmt(self.total_savings),
            "interest_collected": fmt(self.interest_collected),
            "activity_net_profit": fmt(self.activity_net_profit),
            "loan_share_per_identity": fmt(self.loan_share_per_identity),
            "activity_share_per_identity": fmt(self.activity_share_per_identity),
            "grand_total_receive": fmt(self.grand_total_receive),
            "expected_total": fmt(self.expected_total),
            "undistributed": fmt(self.undistributed),
            "unattributed_savings": fmt(self.unattributed_savings),
            "rows": [
                {
                    "member_id": row.identity.member_id,
                    "action_alias": row.identity.alias,
                    "label": row.label,
                    "weekly_total": fmt(row.savings.weekly_total),
                    "monthly_total": fmt(row.savings.monthly_total),
                    "savings_total": fmt(row.savings.total),
                    "loan_share": fmt(row.loan_share),
                    "activity_share": fmt(row.activity_share),
                    "total_receive": fmt(row.total_receive),
                }
                for row in self.rows
            ],
        }


@dataclass(frozen=True)
class DashboardSummary:
    """Headline figures for the group as of a point in time"""
    total_savings: Decimal
    total_loaned: Decimal
    active_loans: int
    overdue_loan_ids: Tuple[str, ...] = ()
    due_soon_loan_ids: Tuple[str, ...] = ()


def interest_collected(loans: Iterable[Loan], year: int) -> Decimal:
    """Interest payments dated in the year (UTC calendar year), across all loans"""
    return sum_amounts(
        payment.amount
        for loan in loans
        for payment in loan.payments
        if payment.payment_type == PaymentType.INTEREST and payment.date.year == year
    )


def equal_share(amount: Decimal, count: int) -> Decimal:
    """amount split evenly; zero when there is nobody to split across"""
    if count <= 0:
        return ZERO
    return amount / Decimal(count)


class ProfitDistributionEngine:
    """Builds the year-end distribution report"""

    def __init__(
        self,
        config: Optional[BanquitoConfig] = None,
        resolver: Optional[IdentityResolver] = None,
        savings_ledger: Optional[SavingsLedger] = None,
        activity_ledger: Optional[ActivityLedger] = None,
        loan_engine: Optional[LoanAccrualEngine] = None
    ):
        self.config = config or get_config()
        self.resolver = resolver or IdentityResolver()
        self.savings_ledger = savings_ledger or SavingsLedger()
        self.activity_ledger = activity_ledger or ActivityLedger()
        self.loan_engine = loan_engine or LoanAccrualEngine(self.config)
        self.logger = get_logger("banquito.distribution")

    def report_for(
        self,
        year: int,
        members: Iterable,
        weekly_payments: Iterable[WeeklyPayment],
        monthly_fees: Iterable[MonthlyFee],
        loans: Iterable[Loan],
        activities: Iterable[Activity],
        member_activities: Iterable[MemberActivity],
        active_only: bool = False
    ) -> YearReport:
        """
        Distribution of savings and shared profits for a year

        Args:
            year: Reporting year
            members: Member snapshot
            weekly_payments: Weekly payment snapshot
            monthly_fees: Monthly fee snapshot
            loans: Loan snapshot (payments embedded)
            activities: Activity snapshot
            member_activities: Ticket rows
            active_only: Leave inactive members out of the split

        Returns:
            YearReport with one row per identity
        """
        members = list(members)
        weekly_payments = latest_per_slot(weekly_payments)
        monthly_fees = latest_per_slot(monthly_fees)
        members_by_id = {member.id: member for member in members}

        identities = self.resolver.resolve(members, active_only)
        collected = interest_collected(loans, year)
        activity_profit = self.activity_ledger.net_profit_for_year(activities, member_activities, year)

        loan_share = equal_share(collected, len(identities))
        activity_share = equal_share(activity_profit, len(identities))

        rows = []
        for identity in identities:
            savings = self.savings_ledger.savings_for(identity, year, weekly_payments, monthly_fees)
            rows.append(IdentityDistribution(
                identity=identity,
                label=identity_label(identity, members_by_id.get(identity.member_id)),
                savings=savings,
                loan_share=loan_share,
                activity_share=activity_share
            ))

        report = YearReport(
            year=year,
            rows=tuple(rows),
            total_savings=sum_amounts(row.savings.total for row in rows),
            interest_collected=collected,
            activity_net_profit=activity_profit,
            loan_share_per_identity=loan_share,
            activity_share_per_identity=activity_share,
            unattributed_savings=self.savings_ledger.unattributed_total(
                members, year, weekly_payments, monthly_fees
            )
        )

        if report.undistributed:
            self.logger.warning(
                f"Profits of {report.undistributed} in {year} were not distributed: no identities"
            )

        log_action(
            self.logger, "info", f"Year report generated for {year}",
            action="year_report", resource=str(year),
            extra={
                "identities": report.identity_count,
                "interest_collected": str(collected),
                "activity_net_profit": str(activity_profit),
                "grand_total_receive": str(report.grand_total_receive),
            }
        )
        return report

    def dashboard_summary(
        self,
        now,
        weekly_payments: Iterable[WeeklyPayment],
        monthly_fees: Iterable[MonthlyFee],
        loans: Iterable[Loan]
    ) -> DashboardSummary:
        """
        All-time savings, amount lent, and loans needing attention at now
        """
        now = to_datetime(now, "now")
        loans = list(loans)

        total_savings = (
            sum_amounts(p.amount for p in latest_per_slot(weekly_payments)) +
            sum_amounts(f.amount for f in latest_per_slot(monthly_fees))
        )

        active = 0
        overdue: List[str] = []
        due_soon: List[str] = []
        for loan in loans:
            standing = self.loan_engine.classify(loan, now)
            if standing == LoanStanding.PAID:
                continue
            active += 1
            if standing == LoanStanding.OVERDUE:
                overdue.append(loan.id)
            elif standing == LoanStanding.DUE_SOON:
                due_soon.append(loan.id)

        return DashboardSummary(
            total_savings=total_savings,
            total_loaned=sum_amounts(loan.principal for loan in loans),
            active_loans=active,
            overdue_loan_ids=tuple(overdue),
            due_soon_loan_ids=tuple(due_soon)
        )
